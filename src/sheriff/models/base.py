"""
Base class for Sheriff's Office record models.

Records are pydantic models with snake_case attributes and camelCase
aliases; the aliases are the field names used on the wire and in the
persisted snapshot. Timestamps are written with millisecond precision in
UTC, e.g. ``2024-05-01T10:00:00.000Z``.
"""

from datetime import datetime, timezone
from typing import Annotated, Any
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, PlainSerializer, field_validator
from pydantic.alias_generators import to_camel


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def new_id() -> str:
    """Opaque, globally unique record identifier."""
    return str(uuid4())


def truncate_to_millis(v: datetime) -> datetime:
    return v.replace(microsecond=v.microsecond - v.microsecond % 1000)


def format_timestamp(v: datetime) -> str:
    """
    Format a timestamp for the wire and the snapshot file.

    Args:
        v: Aware datetime (naive values are taken as UTC)

    Returns:
        ISO-8601 string in UTC with milliseconds and a ``Z`` suffix
    """
    if v.tzinfo is None:
        v = v.replace(tzinfo=timezone.utc)
    v = v.astimezone(timezone.utc)
    return v.strftime("%Y-%m-%dT%H:%M:%S.") + f"{v.microsecond // 1000:03d}Z"


Timestamp = Annotated[
    datetime, PlainSerializer(format_timestamp, return_type=str, when_used="json")
]


class RecordModel(BaseModel):
    """Base class for all stored records and their API views."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    @field_validator("*", mode="after")
    @classmethod
    def _assume_utc(cls, v: Any) -> Any:
        # Snapshots written by older tooling may carry naive timestamps.
        if isinstance(v, datetime) and v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    def to_json(self) -> dict[str, Any]:
        """Serialize with wire names and ISO-8601 timestamps."""
        return self.model_dump(mode="json", by_alias=True)
