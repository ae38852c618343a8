"""
Case files and the person summary derived from them.
"""

from enum import Enum
from typing import Optional

from pydantic import Field

from sheriff.models.base import RecordModel, Timestamp


class CaseStatus(str, Enum):
    """Status of a case file."""

    OPEN = "offen"
    IN_PROGRESS = "in Bearbeitung"
    CLOSED = "abgeschlossen"


class Case(RecordModel):
    """A case file about one person."""

    id: str
    case_number: str = Field(min_length=1)
    person_name: str = Field(min_length=1)
    crime: str
    status: CaseStatus
    notes: Optional[str] = None
    photo: Optional[str] = None  # data URL
    characteristics: Optional[str] = None
    handler: str  # username of the responsible deputy
    created_at: Timestamp
    updated_at: Timestamp


class PersonSummary(RecordModel):
    """Per-person aggregate over all case files. Never stored."""

    name: str
    photo: Optional[str] = None
    characteristics: Optional[str] = None
    case_count: int
    last_crime: Optional[str] = None
    last_case_date: Optional[Timestamp] = None
    cases: list[Case] = Field(default_factory=list)
