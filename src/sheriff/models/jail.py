"""
Jail records.
"""

from typing import Optional

from pydantic import Field, model_validator

from sheriff.models.base import RecordModel, Timestamp


class JailRecord(RecordModel):
    """
    One incarceration.

    Whether a sentence has run out is derived by clients from
    start_time + duration_minutes; `released` is the only terminal state
    the server tracks.
    """

    id: str
    person_name: str = Field(min_length=1)
    crime: str
    duration_minutes: int = Field(ge=0)
    start_time: Timestamp
    handler: str
    released: int = Field(default=0, ge=0, le=1)
    released_at: Optional[Timestamp] = None

    @model_validator(mode="after")
    def _release_consistent(self) -> "JailRecord":
        if bool(self.released) != (self.released_at is not None):
            raise ValueError("released and releasedAt must be set together")
        return self
