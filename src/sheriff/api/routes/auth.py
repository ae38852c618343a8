"""
Authentication API routes.

Provides endpoints for:
- Login (username/password)
- Logout (session revocation)
- Password change (with session rotation)
- Current user profile
"""

import logging

from fastapi import APIRouter, Request
from pydantic import Field

from sheriff.api.deps import (
    AppSettings,
    Audit,
    CurrentUser,
    Sessions,
    SessionToken,
    Store,
    Throttle,
)
from sheriff.exceptions import AuthenticationError, NotFoundError, ValidationError
from sheriff.models import AuditEntity, PublicUser
from sheriff.models.base import RecordModel
from sheriff.security.auth import Identity, hash_password, needs_rehash, verify_password

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["authentication"])

INVALID_CREDENTIALS = "Ungültiger Benutzername oder Passwort"


# Request/Response Models
class LoginRequest(RecordModel):
    """Login request body."""

    username: str = Field(..., min_length=1, max_length=100)
    password: str = Field(..., min_length=1, max_length=200)


class LoginResponse(PublicUser):
    """Public profile plus the new session token."""

    session_token: str


class ChangePasswordRequest(RecordModel):
    """Password change request."""

    new_password: str = Field(..., max_length=200)


class ChangePasswordResponse(RecordModel):
    success: bool = True
    session_token: str


def get_client_ip(request: Request) -> str:
    """Extract client IP from request."""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


# Endpoints
@router.post("/login")
async def login(
    request: Request,
    body: LoginRequest,
    store: Store,
    sessions: Sessions,
    throttle: Throttle,
    audit: Audit,
) -> LoginResponse:
    """
    Authenticate a user and open a session.

    The error is identical whether the username or the password was wrong.
    """
    throttle.check(body.username)

    user = store.get_user_by_username(body.username)
    if user is None or not verify_password(body.password, user.password):
        throttle.record_failure(body.username)
        logger.warning(
            f"Failed login for '{body.username}' from {get_client_ip(request)}"
        )
        raise AuthenticationError(INVALID_CREDENTIALS)

    throttle.record_success(body.username)

    if needs_rehash(user.password):
        store.update_user_password(user.id, hash_password(body.password), clear_must_change=False)
        logger.info(f"Upgraded stored password of user {user.username}")

    token = sessions.create_session(
        Identity(user_id=user.id, username=user.username, rank=user.rank)
    )
    audit.record(
        "Login",
        AuditEntity.USER,
        user.id,
        f"Benutzer {user.username} hat sich angemeldet",
        user.username,
    )
    return LoginResponse(**user.public().model_dump(), session_token=token)


@router.post("/logout")
async def logout(
    identity: CurrentUser,
    token: SessionToken,
    sessions: Sessions,
    audit: Audit,
) -> dict[str, bool]:
    """Revoke the presenting session."""
    sessions.revoke_session(token)
    audit.record(
        "Logout",
        AuditEntity.USER,
        identity.user_id,
        f"Benutzer {identity.username} hat sich abgemeldet",
        identity.username,
    )
    return {"success": True}


@router.post("/change-password")
async def change_password(
    body: ChangePasswordRequest,
    identity: CurrentUser,
    token: SessionToken,
    settings: AppSettings,
    store: Store,
    sessions: Sessions,
    audit: Audit,
) -> ChangePasswordResponse:
    """
    Change the caller's own password.

    The presenting token is revoked and a fresh one is returned.
    """
    if len(body.new_password) < settings.min_password_length:
        raise ValidationError(
            errors=[
                f"newPassword: mindestens {settings.min_password_length} Zeichen erforderlich"
            ]
        )

    user = store.update_user_password(identity.user_id, hash_password(body.new_password))
    if user is None:
        raise NotFoundError("Benutzer nicht gefunden")

    new_token = sessions.rotate_session(token, identity)
    audit.record(
        "Passwort geändert",
        AuditEntity.USER,
        user.id,
        f"Benutzer {user.username} hat das Passwort geändert",
        identity.username,
    )
    return ChangePasswordResponse(session_token=new_token)


@router.get("/me")
async def me(identity: CurrentUser, store: Store) -> PublicUser:
    """Public profile of the calling user."""
    user = store.get_user(identity.user_id)
    if user is None:
        raise NotFoundError("Benutzer nicht gefunden")
    return user.public()
