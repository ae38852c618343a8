"""
Fine catalogue and city laws.
"""

from typing import Literal, Optional

from pydantic import Field

from sheriff.models.base import RecordModel, Timestamp

CITY_LAWS_ID = "singleton"


class Fine(RecordModel):
    """A catalogue entry: violation and amount in whole currency units."""

    id: str
    violation: str = Field(min_length=1)
    amount: int = Field(ge=0)
    remarks: Optional[str] = None


class CityLaws(RecordModel):
    """The single city-laws document."""

    id: Literal["singleton"] = CITY_LAWS_ID
    content: str
    updated_at: Timestamp
    updated_by: str
