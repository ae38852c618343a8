"""
Tests for the authentication endpoints.

Tests:
- Login and generic failure message
- Session token transport (X-Session-Token, Bearer)
- Logout and password change with token rotation
- Login throttling
- Legacy plaintext password upgrade
"""

from sheriff.models import Rank
from sheriff.security.auth import hash_password


class TestLogin:
    """Tests for POST /api/auth/login."""

    def test_login_returns_profile_and_token(self, client, seed_password):
        """Should return the public profile plus a session token."""
        response = client.post(
            "/api/auth/login", json={"username": "sheriff", "password": seed_password}
        )
        assert response.status_code == 200
        data = response.json()
        assert data["username"] == "sheriff"
        assert data["rank"] == "Sheriff"
        assert data["sessionToken"]
        assert "password" not in data

    def test_wrong_password_gives_generic_401(self, client):
        """Should not reveal whether the username exists."""
        wrong_pw = client.post(
            "/api/auth/login", json={"username": "sheriff", "password": "nope"}
        )
        unknown_user = client.post(
            "/api/auth/login", json={"username": "ghost", "password": "nope"}
        )
        assert wrong_pw.status_code == 401
        assert unknown_user.status_code == 401
        assert wrong_pw.json() == unknown_user.json()
        assert wrong_pw.json()["message"] == "Ungültiger Benutzername oder Passwort"
        assert "sessionToken" not in wrong_pw.json()

    def test_login_is_audited(self, client, store, seed_password):
        """Should write a Login audit entry."""
        client.post("/api/auth/login", json={"username": "sheriff", "password": seed_password})
        logs = store.list_audit_logs()
        assert logs[0].action == "Login"
        assert logs[0].entity == "user"
        assert logs[0].username == "sheriff"

    def test_failed_login_is_not_audited(self, client, store):
        """Should not record rejected attempts."""
        client.post("/api/auth/login", json={"username": "sheriff", "password": "nope"})
        assert store.list_audit_logs() == []

    def test_missing_fields_is_400(self, client):
        """Should report malformed bodies as a 400 with itemized errors."""
        response = client.post("/api/auth/login", json={"username": "sheriff"})
        assert response.status_code == 400
        body = response.json()
        assert body["message"] == "Ungültige Eingabe"
        assert any(e.startswith("password") for e in body["errors"])


class TestLoginThrottle:
    """Tests for failed-login throttling."""

    def test_blocks_after_max_failures(self, client, seed_password):
        """Should reject even a correct password once the limit is reached."""
        for _ in range(3):
            response = client.post(
                "/api/auth/login", json={"username": "sheriff", "password": "wrong"}
            )
            assert response.status_code == 401

        response = client.post(
            "/api/auth/login", json={"username": "sheriff", "password": seed_password}
        )
        assert response.status_code == 429
        assert int(response.headers["Retry-After"]) > 0

    def test_throttle_is_case_insensitive(self, client):
        """Should count SHERIFF and sheriff as the same account."""
        for name in ("sheriff", "Sheriff", "SHERIFF"):
            client.post("/api/auth/login", json={"username": name, "password": "wrong"})
        response = client.post(
            "/api/auth/login", json={"username": "sheriff", "password": "wrong"}
        )
        assert response.status_code == 429

    def test_success_resets_counter(self, client, seed_password):
        """Should forget earlier failures after a successful login."""
        for _ in range(2):
            client.post("/api/auth/login", json={"username": "sheriff", "password": "wrong"})
        ok = client.post(
            "/api/auth/login", json={"username": "sheriff", "password": seed_password}
        )
        assert ok.status_code == 200
        for _ in range(2):
            response = client.post(
                "/api/auth/login", json={"username": "sheriff", "password": "wrong"}
            )
            assert response.status_code == 401


class TestSessionTokens:
    """Tests for session token handling."""

    def test_missing_token(self, client):
        """Should reject requests without a token."""
        response = client.get("/api/cases")
        assert response.status_code == 401
        assert response.json() == {"message": "Kein Session-Token"}

    def test_unknown_token(self, client):
        """Should reject tokens that were never issued."""
        response = client.get("/api/cases", headers={"X-Session-Token": "made-up"})
        assert response.status_code == 401
        assert response.json() == {"message": "Session ungültig oder abgelaufen"}

    def test_bearer_token_accepted(self, client, sheriff_headers):
        """Should accept the token in an Authorization: Bearer header."""
        token = sheriff_headers["X-Session-Token"]
        response = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 200
        assert response.json()["username"] == "sheriff"

    def test_me_has_no_password(self, client, sheriff_headers):
        """Should expose only the public profile."""
        data = client.get("/api/auth/me", headers=sheriff_headers).json()
        assert set(data) == {"id", "username", "rank", "mustChangePassword"}

    def test_logout_revokes_token(self, client, store, sheriff_headers):
        """Should make the token unusable after logout."""
        response = client.post("/api/auth/logout", headers=sheriff_headers)
        assert response.status_code == 200
        assert response.json() == {"success": True}
        assert client.get("/api/auth/me", headers=sheriff_headers).status_code == 401
        assert store.list_audit_logs()[0].action == "Logout"


class TestChangePassword:
    """Tests for POST /api/auth/change-password."""

    def test_rotates_token(self, client, sheriff_headers):
        """Should revoke the presenting token and issue a working new one."""
        response = client.post(
            "/api/auth/change-password",
            json={"newPassword": "brand-new-pw"},
            headers=sheriff_headers,
        )
        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True

        new_headers = {"X-Session-Token": data["sessionToken"]}
        assert client.get("/api/auth/me", headers=sheriff_headers).status_code == 401
        assert client.get("/api/auth/me", headers=new_headers).status_code == 200

    def test_new_password_works_and_flag_clears(self, client, store, login):
        """Should store the new password and clear mustChangePassword."""
        user = store.create_user(
            "rookie", hash_password("initial-pw"), Rank.TRAINEE, must_change_password=1
        )
        headers = login("rookie", "initial-pw")

        client.post(
            "/api/auth/change-password", json={"newPassword": "secret-99"}, headers=headers
        )

        user = store.get_user(user.id)
        assert user.must_change_password == 0
        assert user.password.startswith("$argon2")
        assert login("rookie", "secret-99")

    def test_too_short_password_rejected(self, client, sheriff_headers):
        """Should enforce the minimum length server-side and keep the session."""
        response = client.post(
            "/api/auth/change-password", json={"newPassword": "abc"}, headers=sheriff_headers
        )
        assert response.status_code == 400
        assert response.json()["errors"]
        assert client.get("/api/auth/me", headers=sheriff_headers).status_code == 200

    def test_requires_session(self, client):
        """Should not allow anonymous password changes."""
        response = client.post("/api/auth/change-password", json={"newPassword": "whatever"})
        assert response.status_code == 401


class TestLegacyPasswords:
    """Tests for plaintext passwords from old snapshots."""

    def test_plaintext_password_upgraded_on_login(self, client, store):
        """Should accept a legacy plaintext password once and store a hash."""
        store.create_user("oldtimer", "letmein", Rank.DEPUTY_SENIOR, must_change_password=1)

        response = client.post(
            "/api/auth/login", json={"username": "oldtimer", "password": "letmein"}
        )
        assert response.status_code == 200

        user = store.get_user_by_username("oldtimer")
        assert user.password.startswith("$argon2")
        assert user.must_change_password == 1

        again = client.post(
            "/api/auth/login", json={"username": "oldtimer", "password": "letmein"}
        )
        assert again.status_code == 200
