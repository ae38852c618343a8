"""
Command-line maintenance scripts for the persisted snapshot.

Usage:
    python -m sheriff.scripts.export_state [OUTPUT]
    python -m sheriff.scripts.import_state INPUT [--dry-run]
"""

from sheriff.config import Settings
from sheriff.security.auth import hash_password
from sheriff.storage import EntityStore, SnapshotService


def open_snapshot_service(cfg: Settings) -> SnapshotService:
    """Snapshot service over a fresh store, backed by the configured data file."""
    return SnapshotService(
        EntityStore(),
        cfg.snapshot_path,
        seed_file=cfg.seed_file,
        seed_username=cfg.seed_admin_username,
        seed_password_hash=hash_password(cfg.seed_admin_password),
    )
