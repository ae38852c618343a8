#!/usr/bin/env python3
"""
Import a JSON snapshot into the persisted store.

The file is validated first; an invalid file is reported and nothing is
written. With --dry-run only the validation runs. Stop the server before
importing, or its next autosave overwrites the imported data.

Usage:
    python -m sheriff.scripts.import_state data/storage-export.json
    python -m sheriff.scripts.import_state backup.json --dry-run
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from sheriff.config import Settings
from sheriff.scripts import open_snapshot_service

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


def main(argv: Optional[Sequence[str]] = None, cfg: Optional[Settings] = None) -> int:
    parser = argparse.ArgumentParser(
        description="Validate and import a JSON snapshot into the Sheriff's Office store",
    )
    parser.add_argument("input", type=Path, help="Snapshot file to import")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Only validate, don't write the data file",
    )
    args = parser.parse_args(argv)

    if not args.input.exists():
        print(f"File not found: {args.input}", file=sys.stderr)
        return 1

    try:
        candidate = json.loads(args.input.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        print(f"Invalid JSON in {args.input}: {e}", file=sys.stderr)
        return 1

    cfg = cfg or Settings()
    snapshots = open_snapshot_service(cfg)
    result = snapshots.validate_state(candidate)
    if not result.valid:
        print("Validation failed:", file=sys.stderr)
        for error in result.errors:
            print(f"  - {error}", file=sys.stderr)
        return 1

    if args.dry_run:
        print(f"{args.input} is valid")
        return 0

    snapshots.import_state(candidate)
    path = snapshots.save_now()
    print(f"Imported from {args.input} into {path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
