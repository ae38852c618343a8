"""
Rank-based permissions.

Every rank check goes through PERMISSION_TABLE; routes never compare ranks
directly.
"""

from enum import Enum

from sheriff.exceptions import AuthorizationError
from sheriff.models import Rank


class Permission(str, Enum):
    """Guarded capabilities."""

    DELETE_RECORDS = "delete_records"  # cases, jail records, fines, weapons
    ASSIGN_TASKS = "assign_tasks"      # create and transfer tasks
    MANAGE_USERS = "manage_users"      # create accounts
    EDIT_LAWS = "edit_laws"            # save city laws
    MANAGE_STORAGE = "manage_storage"  # snapshot admin routes


PERMISSION_TABLE: dict[Permission, frozenset[Rank]] = {
    Permission.DELETE_RECORDS: frozenset(
        {Rank.SHERIFF, Rank.CHIEF_DEPUTY, Rank.DEPUTY_SERGEANT}
    ),
    Permission.ASSIGN_TASKS: frozenset(
        {Rank.SHERIFF, Rank.DEPUTY_SHERIFF, Rank.DEPUTY_SERGEANT}
    ),
    Permission.MANAGE_USERS: frozenset({Rank.SHERIFF}),
    Permission.EDIT_LAWS: frozenset({Rank.SHERIFF, Rank.CHIEF_DEPUTY}),
    Permission.MANAGE_STORAGE: frozenset({Rank.SHERIFF}),
}


def has_permission(rank: Rank, permission: Permission) -> bool:
    """Check if a rank holds a permission."""
    return Rank(rank) in PERMISSION_TABLE[Permission(permission)]


def require_permission(rank: Rank, permission: Permission) -> None:
    """
    Raise if a rank lacks a permission.

    Raises:
        AuthorizationError: With a message that does not name the required rank
    """
    if not has_permission(rank, permission):
        raise AuthorizationError()
