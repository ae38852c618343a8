"""
In-memory persistence layer: entity store, audit recorder and snapshots.
"""

from sheriff.storage.audit import AuditRecorder
from sheriff.storage.snapshot import SnapshotService
from sheriff.storage.store import EntityStore, StoreState

__all__ = [
    "AuditRecorder",
    "EntityStore",
    "SnapshotService",
    "StoreState",
]
