"""
Weapon registry.

Civilian weapons (Bürgerwaffen) and service weapons (Dienstwaffen) share one
collection but use separate status vocabularies.
"""

from enum import Enum
from typing import Optional

from pydantic import Field, model_validator

from sheriff.models.base import RecordModel, Timestamp


class WeaponCategory(str, Enum):
    CIVILIAN = "Bürgerwaffe"
    SERVICE = "Dienstwaffe"


WEAPON_STATUSES: dict[WeaponCategory, tuple[str, ...]] = {
    WeaponCategory.CIVILIAN: ("registriert", "beschlagnahmt", "zurückgegeben"),
    WeaponCategory.SERVICE: ("vergeben", "im Waffenschrank", "verloren gegangen"),
}


def is_valid_status(category: WeaponCategory, status: str) -> bool:
    """Check that a status belongs to the category's vocabulary."""
    return status in WEAPON_STATUSES[WeaponCategory(category)]


class Weapon(RecordModel):
    """A registered weapon."""

    id: str
    serial_number: str = Field(min_length=1)
    weapon_type: str
    owner: str
    category: WeaponCategory
    status: str
    status_changed_at: Timestamp
    created_at: Timestamp
    created_by: str
    updated_at: Timestamp
    updated_by: Optional[str] = None

    @model_validator(mode="after")
    def _status_in_vocabulary(self) -> "Weapon":
        if not is_valid_status(self.category, self.status):
            raise ValueError(
                f"status '{self.status}' is not valid for category '{self.category.value}'"
            )
        return self
