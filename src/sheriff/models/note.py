"""
Shared and private notes.
"""

from typing import Optional

from sheriff.models.base import RecordModel, Timestamp


class GlobalNote(RecordModel):
    """Note visible to every signed-in user."""

    id: str
    content: str
    author: str
    created_at: Timestamp
    updated_at: Timestamp
    updated_by: Optional[str] = None


class UserNote(RecordModel):
    """Private note, visible only to its owner."""

    id: str
    user_id: str
    content: str
    created_at: Timestamp
    updated_at: Timestamp
