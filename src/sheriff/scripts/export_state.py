#!/usr/bin/env python3
"""
Export the persisted store to a standalone JSON file.

Reads the configured data file (or the seed state if there is none yet)
and writes it, pretty-printed, to OUTPUT.

Usage:
    python -m sheriff.scripts.export_state
    python -m sheriff.scripts.export_state backups/storage-2024-05-01.json
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
        description="Export the Sheriff's Office store to a JSON file",
    )
    parser.add_argument(
        "output",
        nargs="?",
        type=Path,
        help="Output file (default: <data_dir>/storage-export.json)",
    )
    args = parser.parse_args(argv)

    cfg = cfg or Settings()
    snapshots = open_snapshot_service(cfg)
    if not snapshots.load_from_disk():
        logger.warning("No usable data file found; exporting the seed state")
        snapshots.reset_to_seed()

    out_path = args.output or cfg.data_dir / "storage-export.json"
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_text(
        json.dumps(snapshots.export_state(), ensure_ascii=False, indent=2),
        encoding="utf-8",
    )
    print(f"Exported to {out_path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
