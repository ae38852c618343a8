"""
Unit tests for password hashing, permissions, sessions and login throttling.
"""

from datetime import datetime, timedelta, timezone

import pytest

from sheriff.exceptions import AuthorizationError, LoginThrottledError
from sheriff.models import Rank
from sheriff.security import (
    PERMISSION_TABLE,
    Identity,
    LoginThrottle,
    Permission,
    SessionManager,
    has_permission,
    hash_password,
    needs_rehash,
    require_permission,
    verify_password,
)


class Clock:
    def __init__(self):
        self.now = datetime(2024, 5, 1, tzinfo=timezone.utc)

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock():
    return Clock()


@pytest.fixture
def identity():
    return Identity(user_id="u-1", username="sheriff", rank=Rank.SHERIFF)


class TestPasswordHashing:
    """Tests for Argon2 hashing and legacy plaintext values."""

    def test_hash_and_verify(self):
        """Should verify the right password and reject a wrong one."""
        hashed = hash_password("correct horse")
        assert hashed.startswith("$argon2")
        assert verify_password("correct horse", hashed)
        assert not verify_password("wrong horse", hashed)
        assert not needs_rehash(hashed)

    def test_legacy_plaintext(self):
        """Should compare plaintext values and flag them for rehash."""
        assert verify_password("old-pw", "old-pw")
        assert not verify_password("old-pw", "other")
        assert needs_rehash("old-pw")

    def test_corrupt_hash_fails_closed(self):
        """Should reject a malformed Argon2 string."""
        assert not verify_password("x", "$argon2id$garbage")


class TestPermissions:
    """Tests for the permission table."""

    @pytest.mark.parametrize(
        "permission,count",
        [
            (Permission.DELETE_RECORDS, 3),
            (Permission.ASSIGN_TASKS, 3),
            (Permission.MANAGE_USERS, 1),
            (Permission.EDIT_LAWS, 2),
            (Permission.MANAGE_STORAGE, 1),
        ],
    )
    def test_table_sizes(self, permission, count):
        """Should grant each permission to the expected number of ranks."""
        assert len(PERMISSION_TABLE[permission]) == count

    def test_sheriff_holds_everything(self):
        """Should grant every permission to the Sheriff."""
        assert all(has_permission(Rank.SHERIFF, p) for p in Permission)

    def test_trainee_holds_nothing(self):
        """Should deny every permission to a Trainee."""
        assert not any(has_permission(Rank.TRAINEE, p) for p in Permission)

    def test_not_monotonic_in_rank(self):
        """Should let a Deputy Sheriff assign tasks while a Chief Deputy cannot."""
        assert has_permission(Rank.DEPUTY_SHERIFF, Permission.ASSIGN_TASKS)
        assert not has_permission(Rank.CHIEF_DEPUTY, Permission.ASSIGN_TASKS)

    def test_require_raises(self):
        """Should raise AuthorizationError on denial."""
        with pytest.raises(AuthorizationError):
            require_permission(Rank.DEPUTY_JUNIOR, Permission.EDIT_LAWS)
        require_permission(Rank.CHIEF_DEPUTY, Permission.EDIT_LAWS)


class TestSessionManager:
    """Tests for in-memory sessions."""

    def test_create_and_validate(self, clock, identity):
        """Should resolve a fresh token to its identity."""
        sessions = SessionManager(clock=clock)
        token = sessions.create_session(identity)
        assert sessions.validate_session(token) == identity
        assert sessions.validate_session("unknown") is None

    def test_tokens_are_unique(self, clock, identity):
        """Should issue a new token per login."""
        sessions = SessionManager(clock=clock)
        assert sessions.create_session(identity) != sessions.create_session(identity)
        assert sessions.count() == 2

    def test_expiry_is_absolute(self, clock, identity):
        """Should expire after the TTL regardless of use."""
        sessions = SessionManager(ttl=timedelta(hours=1), clock=clock)
        token = sessions.create_session(identity)
        clock.advance(minutes=59)
        assert sessions.validate_session(token) == identity
        clock.advance(minutes=1)
        assert sessions.validate_session(token) is None
        assert sessions.count() == 0

    def test_rotate(self, clock, identity):
        """Should revoke the old token and issue a working new one."""
        sessions = SessionManager(clock=clock)
        old = sessions.create_session(identity)
        new = sessions.rotate_session(old, identity)
        assert sessions.validate_session(old) is None
        assert sessions.validate_session(new) == identity

    def test_revoke(self, clock, identity):
        """Should report whether a token was known."""
        sessions = SessionManager(clock=clock)
        token = sessions.create_session(identity)
        assert sessions.revoke_session(token) is True
        assert sessions.revoke_session(token) is False

    def test_revoke_user_sessions(self, clock, identity):
        """Should drop every session of one user only."""
        sessions = SessionManager(clock=clock)
        sessions.create_session(identity)
        sessions.create_session(identity)
        other = sessions.create_session(
            Identity(user_id="u-2", username="deputy", rank=Rank.TRAINEE)
        )
        assert sessions.revoke_user_sessions("u-1") == 2
        assert sessions.validate_session(other) is not None

    def test_purge_expired(self, clock, identity):
        """Should sweep only expired sessions."""
        sessions = SessionManager(ttl=timedelta(hours=1), clock=clock)
        sessions.create_session(identity)
        clock.advance(minutes=30)
        fresh = sessions.create_session(identity)
        clock.advance(minutes=31)
        assert sessions.purge_expired() == 1
        assert sessions.validate_session(fresh) == identity


class TestLoginThrottle:
    """Tests for failed-login throttling."""

    def test_blocks_after_limit(self, clock):
        """Should block once the failure limit is reached."""
        throttle = LoginThrottle(max_failures=3, window=timedelta(minutes=5), clock=clock)
        for _ in range(3):
            throttle.check("Sheriff")
            throttle.record_failure("Sheriff")

        with pytest.raises(LoginThrottledError) as exc_info:
            throttle.check("sheriff")
        assert exc_info.value.retry_after == 300

    def test_block_expires(self, clock):
        """Should allow attempts again after the window."""
        throttle = LoginThrottle(max_failures=2, window=timedelta(minutes=1), clock=clock)
        throttle.record_failure("a")
        throttle.record_failure("a")
        clock.advance(seconds=61)
        throttle.check("a")

    def test_old_failures_fall_out_of_window(self, clock):
        """Should only count failures inside the window."""
        throttle = LoginThrottle(max_failures=2, window=timedelta(minutes=1), clock=clock)
        throttle.record_failure("a")
        clock.advance(minutes=2)
        throttle.record_failure("a")
        throttle.check("a")

    def test_success_resets(self, clock):
        """Should clear the count on success."""
        throttle = LoginThrottle(max_failures=2, clock=clock)
        throttle.record_failure("a")
        throttle.record_success("a")
        throttle.record_failure("a")
        throttle.check("a")

    def test_usernames_independent(self, clock):
        """Should not block other usernames."""
        throttle = LoginThrottle(max_failures=1, clock=clock)
        throttle.record_failure("a")
        throttle.check("b")
