"""
Audit trail entries.
"""

from enum import Enum
from typing import Optional

from sheriff.models.base import RecordModel, Timestamp


class AuditEntity(str, Enum):
    """Entity tags used in the audit trail."""

    USER = "user"
    CASE = "case"
    JAIL = "jail"
    FINE = "fine"
    LAW = "law"
    WEAPON = "weapon"
    TASK = "task"
    NOTE = "note"


class AuditLog(RecordModel):
    """Append-only audit entry. `action` and `details` are German UI labels."""

    id: str
    action: str
    entity: str
    entity_id: Optional[str] = None
    details: str = ""
    username: str
    timestamp: Timestamp
