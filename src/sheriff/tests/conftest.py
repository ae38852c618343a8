"""
Pytest configuration and shared fixtures for Sheriff's Office tests.
"""

from typing import Callable, Generator

import pytest
from argon2 import PasswordHasher
from fastapi import FastAPI
from fastapi.testclient import TestClient

from sheriff.config import Settings
from sheriff.main import create_app
from sheriff.models import Rank
from sheriff.security import auth
from sheriff.storage import EntityStore

SEED_PASSWORD = "sheriff-test-pw"


@pytest.fixture(autouse=True)
def fast_password_hasher(monkeypatch) -> None:
    """Use cheap Argon2 parameters so tests don't spend seconds hashing."""
    monkeypatch.setattr(
        auth, "ph", PasswordHasher(time_cost=1, memory_cost=1024, parallelism=1)
    )


@pytest.fixture
def settings(tmp_path) -> Settings:
    """Test settings: no rate limit, no background jobs, data in a temp dir."""
    return Settings(
        environment="testing",
        rate_limit_enabled=False,
        data_dir=tmp_path / "data",
        load_snapshot_on_startup=False,
        autosave_interval_seconds=0,
        session_sweep_interval_seconds=0,
        seed_admin_username="sheriff",
        seed_admin_password=SEED_PASSWORD,
        login_max_failures=3,
        login_lockout_seconds=60,
    )


@pytest.fixture
def app(settings) -> FastAPI:
    return create_app(settings)


@pytest.fixture
def store(app) -> EntityStore:
    return app.state.store


@pytest.fixture
def client(app) -> Generator[TestClient, None, None]:
    with TestClient(app) as client:
        yield client


@pytest.fixture
def login(client) -> Callable[[str, str], dict[str, str]]:
    """Log in and return headers carrying the session token."""

    def _login(username: str, password: str) -> dict[str, str]:
        response = client.post(
            "/api/auth/login", json={"username": username, "password": password}
        )
        assert response.status_code == 200, response.text
        return {"X-Session-Token": response.json()["sessionToken"]}

    return _login


@pytest.fixture
def sheriff_headers(login) -> dict[str, str]:
    """Session headers of the seeded Sheriff account."""
    return login("sheriff", SEED_PASSWORD)


@pytest.fixture
def headers_for(login, store) -> Callable[[Rank], dict[str, str]]:
    """Create a user of the given rank and return its session headers."""
    counter = {"n": 0}

    def _headers_for(rank: Rank) -> dict[str, str]:
        counter["n"] += 1
        username = f"{rank.value.lower().replace(' ', '_')}_{counter['n']}"
        store.create_user(username, auth.hash_password("pw-1234"), rank)
        return login(username, "pw-1234")

    return _headers_for


@pytest.fixture
def seed_password() -> str:
    return SEED_PASSWORD
