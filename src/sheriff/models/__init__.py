"""
Record models for the Sheriff's Office service.
"""

from sheriff.models.audit import AuditEntity, AuditLog
from sheriff.models.base import (
    RecordModel,
    Timestamp,
    format_timestamp,
    new_id,
    truncate_to_millis,
    utcnow,
)
from sheriff.models.case import Case, CaseStatus, PersonSummary
from sheriff.models.fine import CITY_LAWS_ID, CityLaws, Fine
from sheriff.models.jail import JailRecord
from sheriff.models.note import GlobalNote, UserNote
from sheriff.models.snapshot import (
    COLLECTIONS,
    SNAPSHOT_KEYS,
    StoreSnapshot,
    ValidationResult,
)
from sheriff.models.task import Task, TaskStatus
from sheriff.models.user import PublicUser, Rank, User
from sheriff.models.weapon import (
    WEAPON_STATUSES,
    Weapon,
    WeaponCategory,
    is_valid_status,
)

__all__ = [
    "AuditEntity",
    "AuditLog",
    "RecordModel",
    "Timestamp",
    "format_timestamp",
    "new_id",
    "truncate_to_millis",
    "utcnow",
    "Case",
    "CaseStatus",
    "PersonSummary",
    "CITY_LAWS_ID",
    "CityLaws",
    "Fine",
    "JailRecord",
    "GlobalNote",
    "UserNote",
    "COLLECTIONS",
    "SNAPSHOT_KEYS",
    "StoreSnapshot",
    "ValidationResult",
    "Task",
    "TaskStatus",
    "PublicUser",
    "Rank",
    "User",
    "WEAPON_STATUSES",
    "Weapon",
    "WeaponCategory",
    "is_valid_status",
]
