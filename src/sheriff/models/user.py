"""
Personnel accounts and ranks.
"""

from enum import Enum

from pydantic import Field

from sheriff.models.base import RecordModel


class Rank(str, Enum):
    """Personnel ranks, lowest first."""

    TRAINEE = "Trainee"
    DEPUTY_JUNIOR = "Deputy Junior"
    DEPUTY_SHERIFF = "Deputy Sheriff"
    DEPUTY_SENIOR = "Deputy Senior"
    DEPUTY_SERGEANT = "Deputy Sergeant"
    CHIEF_DEPUTY = "Chief Deputy"
    SHERIFF = "Sheriff"


class PublicUser(RecordModel):
    """User as exposed to clients (no password)."""

    id: str
    username: str
    rank: Rank
    must_change_password: int = Field(default=0, ge=0, le=1)


class User(PublicUser):
    """Stored user account. `password` holds an argon2 hash."""

    password: str

    def public(self) -> PublicUser:
        return PublicUser.model_validate(self.model_dump(exclude={"password"}))
