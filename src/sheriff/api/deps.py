"""
FastAPI dependencies for the API.

Provides:
- Access to the store, session table and services on app.state
- Session-token authentication
- Permission-based authorization
- Admin-key access for the storage routes
"""

import hmac
import logging
from typing import Annotated, Callable, Optional

from fastapi import Depends, Header, Request

from sheriff.config import Settings
from sheriff.exceptions import AuthenticationError, AuthorizationError
from sheriff.security.auth import Identity
from sheriff.security.lockout import LoginThrottle
from sheriff.security.permissions import Permission, require_permission
from sheriff.security.sessions import SessionManager
from sheriff.storage import AuditRecorder, EntityStore, SnapshotService

logger = logging.getLogger(__name__)


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_store(request: Request) -> EntityStore:
    return request.app.state.store


def get_sessions(request: Request) -> SessionManager:
    return request.app.state.sessions


def get_audit(request: Request) -> AuditRecorder:
    return request.app.state.audit


def get_snapshots(request: Request) -> SnapshotService:
    return request.app.state.snapshots


def get_throttle(request: Request) -> LoginThrottle:
    return request.app.state.login_throttle


# Type aliases for dependency injection
AppSettings = Annotated[Settings, Depends(get_settings)]
Store = Annotated[EntityStore, Depends(get_store)]
Sessions = Annotated[SessionManager, Depends(get_sessions)]
Audit = Annotated[AuditRecorder, Depends(get_audit)]
Snapshots = Annotated[SnapshotService, Depends(get_snapshots)]
Throttle = Annotated[LoginThrottle, Depends(get_throttle)]


def get_session_token(
    x_session_token: Annotated[Optional[str], Header()] = None,
    authorization: Annotated[Optional[str], Header()] = None,
) -> str:
    """
    Extract the session token.

    Accepts the X-Session-Token header used by the web UI, or a standard
    ``Authorization: Bearer <token>`` header.

    Raises:
        AuthenticationError: If no token was sent
    """
    if x_session_token:
        return x_session_token
    if authorization:
        scheme, _, credentials = authorization.partition(" ")
        if scheme.lower() == "bearer" and credentials.strip():
            return credentials.strip()
    raise AuthenticationError("Kein Session-Token")


SessionToken = Annotated[str, Depends(get_session_token)]


def get_current_identity(token: SessionToken, sessions: Sessions, store: Store) -> Identity:
    """
    Resolve the session token to the calling identity.

    The session's user is looked up in the store on every request, so a
    snapshot import or reset that removes the account ends its sessions and
    a changed rank takes effect immediately.

    Raises:
        AuthenticationError: 401 if the token is unknown or expired, or its
            user no longer exists
    """
    identity = sessions.validate_session(token)
    if identity is None:
        raise AuthenticationError()

    user = store.get_user(identity.user_id)
    if user is None:
        revoked = sessions.revoke_user_sessions(identity.user_id)
        logger.warning(
            f"Ended {revoked} sessions of removed user {identity.username}"
        )
        raise AuthenticationError()
    return Identity(user_id=user.id, username=user.username, rank=user.rank)


CurrentUser = Annotated[Identity, Depends(get_current_identity)]


def require(permission: Permission) -> Callable[[Identity], Identity]:
    """
    Build a dependency that requires a permission.

    Usage:
        @router.delete("/{id}")
        async def delete(identity: Annotated[Identity, Depends(require(Permission.DELETE_RECORDS))]):
            ...
    """

    def dependency(identity: CurrentUser) -> Identity:
        try:
            require_permission(identity.rank, permission)
        except AuthorizationError:
            logger.info(
                f"Denied {permission.value} for {identity.username} ({identity.rank.value})"
            )
            raise
        return identity

    return dependency


CanDeleteRecords = Annotated[Identity, Depends(require(Permission.DELETE_RECORDS))]
CanAssignTasks = Annotated[Identity, Depends(require(Permission.ASSIGN_TASKS))]
CanManageUsers = Annotated[Identity, Depends(require(Permission.MANAGE_USERS))]
CanEditLaws = Annotated[Identity, Depends(require(Permission.EDIT_LAWS))]


def require_storage_admin(
    request: Request,
    settings: AppSettings,
    sessions: Sessions,
    store: Store,
    x_admin_key: Annotated[Optional[str], Header()] = None,
    x_session_token: Annotated[Optional[str], Header()] = None,
    authorization: Annotated[Optional[str], Header()] = None,
) -> str:
    """
    Authorize a storage admin call.

    A configured admin key sent in X-Admin-Key grants access; a wrong key is
    rejected outright. Without the header, the caller needs a session whose
    rank holds MANAGE_STORAGE.

    Returns:
        Name of the acting principal, for the audit trail
    """
    if settings.admin_api_key and x_admin_key is not None:
        if hmac.compare_digest(x_admin_key.encode(), settings.admin_api_key.encode()):
            return "admin-key"
        client = request.client.host if request.client else "unknown"
        logger.warning(f"Invalid admin key presented from {client}")
        raise AuthorizationError("Ungültiger Admin-Key")

    token = get_session_token(x_session_token, authorization)
    identity = get_current_identity(token, sessions, store)
    require_permission(identity.rank, Permission.MANAGE_STORAGE)
    return identity.username


StorageAdmin = Annotated[str, Depends(require_storage_admin)]
