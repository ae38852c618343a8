"""
Session management for the Sheriff's Office service.

Sessions live in process memory only:
- Opaque random tokens, hashed before storage
- Absolute expiry fixed at creation (no sliding renewal)
- Lazy eviction on access plus a periodic sweep
- Token rotation on password change
"""

import hashlib
import logging
import secrets
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Optional

from sheriff.models import Rank, utcnow
from sheriff.security.auth import Identity

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Session:
    """One active session. The plaintext token is never stored."""

    user_id: str
    username: str
    rank: Rank
    expires_at: datetime

    @property
    def identity(self) -> Identity:
        return Identity(user_id=self.user_id, username=self.username, rank=self.rank)


class SessionManager:
    """
    In-memory session table.

    Args:
        ttl: Absolute session lifetime
        clock: Callable returning the current aware datetime
    """

    def __init__(
        self,
        ttl: timedelta = timedelta(hours=24),
        clock: Callable[[], datetime] = utcnow,
    ):
        self.ttl = ttl
        self._clock = clock
        self._lock = threading.Lock()
        self._sessions: dict[str, Session] = {}

    @staticmethod
    def _hash_token(token: str) -> str:
        """Hash a token for secure storage."""
        return hashlib.sha256(token.encode()).hexdigest()

    def create_session(self, identity: Identity) -> str:
        """
        Create a new session.

        Args:
            identity: The authenticated user

        Returns:
            The session token to hand to the client
        """
        token = secrets.token_urlsafe(32)
        session = Session(
            user_id=identity.user_id,
            username=identity.username,
            rank=identity.rank,
            expires_at=self._clock() + self.ttl,
        )
        with self._lock:
            self._sessions[self._hash_token(token)] = session

        logger.info(f"Created session for user {identity.username}")
        return token

    def validate_session(self, token: str) -> Optional[Identity]:
        """
        Resolve a token to its identity.

        Expired sessions are evicted on the spot.

        Returns:
            The identity if the session is active, None otherwise
        """
        token_hash = self._hash_token(token)
        with self._lock:
            session = self._sessions.get(token_hash)
            if session is None:
                return None
            if session.expires_at <= self._clock():
                del self._sessions[token_hash]
                logger.info(f"Session of user {session.username} expired")
                return None
            return session.identity

    def revoke_session(self, token: str) -> bool:
        """
        Revoke a single session.

        Returns:
            True if session was revoked, False if not found
        """
        with self._lock:
            session = self._sessions.pop(self._hash_token(token), None)
        if session is None:
            return False
        logger.info(f"Revoked session of user {session.username}")
        return True

    def rotate_session(self, token: str, identity: Identity) -> str:
        """Revoke the presented token and issue a fresh one for the same identity."""
        self.revoke_session(token)
        return self.create_session(identity)

    def revoke_user_sessions(self, user_id: str) -> int:
        """Revoke every session of one user. Returns the number revoked."""
        with self._lock:
            hashes = [h for h, s in self._sessions.items() if s.user_id == user_id]
            for h in hashes:
                del self._sessions[h]
        if hashes:
            logger.info(f"Revoked {len(hashes)} sessions of user {user_id}")
        return len(hashes)

    def purge_expired(self) -> int:
        """Drop every expired session. Returns the number removed."""
        now = self._clock()
        with self._lock:
            expired = [h for h, s in self._sessions.items() if s.expires_at <= now]
            for h in expired:
                del self._sessions[h]
        if expired:
            logger.info(f"Purged {len(expired)} expired sessions")
        return len(expired)

    def count(self) -> int:
        """Number of stored sessions, including not yet evicted expired ones."""
        with self._lock:
            return len(self._sessions)
