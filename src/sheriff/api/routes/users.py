"""
Personnel API routes.
"""

from fastapi import APIRouter
from pydantic import Field

from sheriff.api.deps import AppSettings, Audit, CanManageUsers, CurrentUser, Store
from sheriff.exceptions import ValidationError
from sheriff.models import AuditEntity, PublicUser, Rank
from sheriff.models.base import RecordModel
from sheriff.security.auth import hash_password

router = APIRouter()


class UserCreate(RecordModel):
    """New account. The initial password must be changed at first login."""

    username: str = Field(..., min_length=1, max_length=100)
    password: str = Field(..., max_length=200)
    rank: Rank
    must_change_password: int = Field(default=1, ge=0, le=1)


@router.get("")
async def list_users(identity: CurrentUser, store: Store) -> list[PublicUser]:
    """List all users without passwords."""
    return [u.public() for u in store.list_users()]


@router.post("")
async def create_user(
    body: UserCreate,
    identity: CanManageUsers,
    settings: AppSettings,
    store: Store,
    audit: Audit,
) -> PublicUser:
    """Create an account. Requires MANAGE_USERS."""
    if len(body.password) < settings.min_password_length:
        raise ValidationError(
            errors=[f"password: mindestens {settings.min_password_length} Zeichen erforderlich"]
        )

    user = store.create_user(
        username=body.username,
        password_hash=hash_password(body.password),
        rank=body.rank,
        must_change_password=body.must_change_password,
    )
    audit.record(
        "Benutzer erstellt",
        AuditEntity.USER,
        user.id,
        f"Neuer Benutzer {user.username} ({user.rank.value}) wurde angelegt",
        identity.username,
    )
    return user.public()
