"""
Security module for the Sheriff's Office service.

Provides:
- Argon2 password hashing
- In-memory session management
- Rank-based permission table
- Login throttling
"""

from sheriff.security.auth import (
    Identity,
    hash_password,
    needs_rehash,
    verify_password,
)
from sheriff.security.lockout import LoginThrottle
from sheriff.security.permissions import (
    PERMISSION_TABLE,
    Permission,
    has_permission,
    require_permission,
)
from sheriff.security.sessions import SessionManager

__all__ = [
    "Identity",
    "hash_password",
    "needs_rehash",
    "verify_password",
    "LoginThrottle",
    "PERMISSION_TABLE",
    "Permission",
    "has_permission",
    "require_permission",
    "SessionManager",
]
