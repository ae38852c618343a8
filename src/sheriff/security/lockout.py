"""
Login throttling.

Counts failed logins per username (case-insensitive) in memory. Once a
username reaches the failure limit inside the window, further attempts are
rejected until the window has passed. A successful login clears the count.
"""

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, Optional

from sheriff.exceptions import LoginThrottledError
from sheriff.models import utcnow

logger = logging.getLogger(__name__)


@dataclass
class _Attempts:
    failures: list[datetime] = field(default_factory=list)
    blocked_until: Optional[datetime] = None


class LoginThrottle:
    """
    Per-username failed-login limiter.

    Args:
        max_failures: Failed attempts allowed inside the window
        window: Length of the counting window and of the block
        clock: Callable returning the current aware datetime
    """

    def __init__(
        self,
        max_failures: int = 5,
        window: timedelta = timedelta(minutes=5),
        clock: Callable[[], datetime] = utcnow,
    ):
        self.max_failures = max_failures
        self.window = window
        self._clock = clock
        self._lock = threading.Lock()
        self._attempts: dict[str, _Attempts] = {}

    @staticmethod
    def _key(username: str) -> str:
        return username.strip().lower()

    def check(self, username: str) -> None:
        """
        Reject the attempt if the username is blocked.

        Raises:
            LoginThrottledError: With the seconds until the block ends
        """
        now = self._clock()
        with self._lock:
            entry = self._attempts.get(self._key(username))
            if entry is None or entry.blocked_until is None:
                return
            if entry.blocked_until <= now:
                del self._attempts[self._key(username)]
                return
            retry_after = max(1, int((entry.blocked_until - now).total_seconds()))
        raise LoginThrottledError(retry_after=retry_after)

    def record_failure(self, username: str) -> None:
        now = self._clock()
        key = self._key(username)
        with self._lock:
            entry = self._attempts.setdefault(key, _Attempts())
            entry.failures = [t for t in entry.failures if now - t < self.window]
            entry.failures.append(now)
            if len(entry.failures) >= self.max_failures:
                entry.blocked_until = now + self.window
                logger.warning(
                    f"Login for '{key}' blocked for {int(self.window.total_seconds())}s "
                    f"after {len(entry.failures)} failed attempts"
                )

    def record_success(self, username: str) -> None:
        with self._lock:
            self._attempts.pop(self._key(username), None)
