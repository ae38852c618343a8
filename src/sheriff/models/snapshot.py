"""
Whole-store snapshot document.
"""

from typing import Optional

from pydantic import BaseModel, Field

from sheriff.models.audit import AuditLog
from sheriff.models.base import RecordModel
from sheriff.models.case import Case
from sheriff.models.fine import CityLaws, Fine
from sheriff.models.jail import JailRecord
from sheriff.models.note import GlobalNote, UserNote
from sheriff.models.task import Task
from sheriff.models.user import User
from sheriff.models.weapon import Weapon

# Snapshot key -> record model of the collection stored under it.
COLLECTIONS: dict[str, type[RecordModel]] = {
    "users": User,
    "cases": Case,
    "jailRecords": JailRecord,
    "fines": Fine,
    "weapons": Weapon,
    "tasks": Task,
    "globalNotes": GlobalNote,
    "userNotes": UserNote,
    "auditLogs": AuditLog,
}

SNAPSHOT_KEYS: tuple[str, ...] = (
    "users",
    "cases",
    "jailRecords",
    "fines",
    "cityLaws",
    "weapons",
    "tasks",
    "globalNotes",
    "userNotes",
    "auditLogs",
)


class StoreSnapshot(RecordModel):
    """Persisted layout of the whole store."""

    users: list[User] = Field(default_factory=list)
    cases: list[Case] = Field(default_factory=list)
    jail_records: list[JailRecord] = Field(default_factory=list)
    fines: list[Fine] = Field(default_factory=list)
    city_laws: Optional[CityLaws] = None
    weapons: list[Weapon] = Field(default_factory=list)
    tasks: list[Task] = Field(default_factory=list)
    global_notes: list[GlobalNote] = Field(default_factory=list)
    user_notes: list[UserNote] = Field(default_factory=list)
    audit_logs: list[AuditLog] = Field(default_factory=list)


class ValidationResult(BaseModel):
    """Outcome of validating a snapshot candidate."""

    valid: bool
    errors: list[str] = Field(default_factory=list)
