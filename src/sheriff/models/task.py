"""
Tasks assigned between personnel.
"""

from enum import Enum
from typing import Optional

from pydantic import Field

from sheriff.models.base import RecordModel, Timestamp


class TaskStatus(str, Enum):
    OPEN = "offen"
    IN_PROGRESS = "in Bearbeitung"
    DONE = "erledigt"


class Task(RecordModel):
    """A task; `assigned_to` and `assigned_by` are usernames."""

    id: str
    title: str = Field(min_length=1)
    description: Optional[str] = None
    assigned_to: str
    assigned_by: str
    status: TaskStatus
    created_at: Timestamp
    updated_at: Timestamp
