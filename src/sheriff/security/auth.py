"""
Password hashing and the authenticated identity.

Passwords are stored as Argon2id hashes. Snapshots created before hashing
was introduced may still carry plaintext passwords; those are compared in
constant time and flagged for rehashing on the next successful login.
"""

import hmac
import logging

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError, VerifyMismatchError
from pydantic import BaseModel

from sheriff.models import Rank

logger = logging.getLogger(__name__)


# Password hasher (Argon2id)
ph = PasswordHasher(
    time_cost=3,        # Number of iterations
    memory_cost=65536,  # 64 MB
    parallelism=4,      # Number of parallel threads
    hash_len=32,        # Hash output length
    salt_len=16,        # Salt length
)

ARGON2_PREFIX = "$argon2"


class Identity(BaseModel):
    """The user a session token resolves to."""

    user_id: str
    username: str
    rank: Rank


def is_hashed(stored: str) -> bool:
    """Whether a stored password value is an Argon2 hash."""
    return stored.startswith(ARGON2_PREFIX)


def hash_password(password: str) -> str:
    """
    Hash a password using Argon2id.

    Args:
        password: Plain text password

    Returns:
        Hashed password string
    """
    return ph.hash(password)


def verify_password(password: str, stored: str) -> bool:
    """
    Verify a password against its stored value.

    Args:
        password: Plain text password to verify
        stored: Argon2 hash, or a legacy plaintext value

    Returns:
        True if password matches, False otherwise
    """
    if not is_hashed(stored):
        return hmac.compare_digest(password.encode(), stored.encode())
    try:
        ph.verify(stored, password)
        return True
    except VerifyMismatchError:
        return False
    except (InvalidHashError, VerificationError):
        logger.warning("Stored password hash could not be verified")
        return False


def needs_rehash(stored: str) -> bool:
    """Whether a stored value should be replaced by a fresh hash."""
    if not is_hashed(stored):
        return True
    try:
        return ph.check_needs_rehash(stored)
    except InvalidHashError:
        return True
