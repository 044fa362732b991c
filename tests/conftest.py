"""
tests/conftest.py -- shared fixtures.

Two levels of fixtures:
  - core: DBStorage on a temp-file SQLite DB, a controllable clock, the
    codec/hasher/AuthService wired by hand (no Flask involved)
  - api: a full app from create_app("testing") with its own temp DB, and a
    Flask test client

argon2 runs with the lowest sensible cost so the suite stays fast.
"""
from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from api import create_app
from models.accounts import AccountStore
from models.db_storage import DBStorage
from models.session_store import SqlSessionStore
from models.user import User
from utils.auth_service import AuthService
from utils.security import AuthConfig, CredentialHasher, TokenCodec

ACCESS_SECRET = "unit-access-secret-0123456789abcdef"
REFRESH_SECRET = "unit-refresh-secret-fedcba9876543210"
PASSWORD = "correct-horse-battery"


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


# ---------------------------------------------------------------------------
# Core fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2025, 1, 1, 12, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
def codec(clock) -> TokenCodec:
    return TokenCodec(clock=clock)


@pytest.fixture
def hasher() -> CredentialHasher:
    return CredentialHasher(time_cost=1, memory_cost=8192)


@pytest.fixture
def auth_config() -> AuthConfig:
    return AuthConfig(
        access_secret=ACCESS_SECRET,
        refresh_secret=REFRESH_SECRET,
        access_lifetime=timedelta(minutes=15),
        refresh_lifetime=timedelta(days=7),
    )


@pytest.fixture
def storage(tmp_path):
    storage = DBStorage(f"sqlite:///{tmp_path / 'core.db'}")
    storage.reload()
    yield storage
    storage.dispose()


@pytest.fixture
def session_store(storage) -> SqlSessionStore:
    return SqlSessionStore(storage)


@pytest.fixture
def accounts(storage) -> AccountStore:
    return AccountStore(storage)


@pytest.fixture
def auth_service(auth_config, accounts, session_store, hasher, codec) -> AuthService:
    return AuthService(auth_config, accounts=accounts, sessions=session_store, hasher=hasher, codec=codec)


@pytest.fixture
def make_user(storage, hasher):
    """Insert a user directly into `storage` and return it."""

    def _make(username="alice", password=PASSWORD, role="user", user_id=None, email=None):
        user = User(
            email=email or f"{username}@example.com",
            username=username,
            password_hash=hasher.hash(password),
            role=role,
        )
        if user_id is not None:
            user.id = user_id
        storage.new(user)
        storage.save()
        return user

    return _make


# ---------------------------------------------------------------------------
# API fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def app(tmp_path):
    app = create_app("testing", overrides={"DATABASE_URL": f"sqlite:///{tmp_path / 'api.db'}"})
    yield app
    app.extensions["storage"].dispose()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def api_user(app):
    """Create users straight in the app's database (e.g. admins, fixed ids)."""
    storage = app.extensions["storage"]
    auth = app.extensions["auth"]

    def _make(username="alice", password=PASSWORD, role="user", user_id=None):
        user = User(
            email=f"{username}@example.com",
            username=username,
            password_hash=auth.hash_password(password),
            role=role,
        )
        if user_id is not None:
            user.id = user_id
        storage.new(user)
        storage.save()
        return user

    return _make


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def login(client, login_name="alice", password=PASSWORD):
    return client.post("/api/v1/auth/login", json={"login": login_name, "password": password})
