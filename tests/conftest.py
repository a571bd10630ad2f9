"""Pytest configuration and shared fixtures."""
import os

# Must be set before rsams.config is imported
os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["JWT_SECRET_KEY"] = "test-secret-key-0123456789-abcdefghijklmnop"

from datetime import datetime, timedelta

import pytest
import pytz
from fastapi.testclient import TestClient

from rsams.config import load_auth_settings
from rsams.core.database import SessionLocal, engine
from rsams.models.base import Base
from rsams.schemas.user import ProfileFields, Role
from rsams.utils.account_manager import AccountManager
from rsams.utils.authenticator import Authenticator
from rsams.utils.password_hasher import PasswordHasher
from rsams.utils.token_issuer import TokenIssuer

STRONG_PASSWORD = "Password1"


class FakeClock:
    """Controllable replacement for the authenticator's clock."""

    def __init__(self, now=None):
        self.now = now or datetime(2024, 9, 2, 8, 0, tzinfo=pytz.utc)

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def db_session():
    """Fresh in-memory schema per test."""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def settings():
    return load_auth_settings()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def accounts(db_session):
    return AccountManager(db_session)


@pytest.fixture
def hasher(settings):
    return PasswordHasher(rounds=settings.bcrypt_rounds)


@pytest.fixture
def tokens(settings):
    return TokenIssuer(settings.jwt_secret_key, settings.jwt_algorithm, settings.token_ttl)


@pytest.fixture
def authenticator(accounts, hasher, tokens, settings, clock):
    return Authenticator(accounts, hasher, tokens, settings, clock=clock)


@pytest.fixture
def alice(authenticator):
    """Registered student alice@example.com / Password1."""
    result = authenticator.register(
        "alice@example.com", STRONG_PASSWORD, Role.STUDENT, ProfileFields(name="Alice")
    )
    assert result.ok
    return result.value


@pytest.fixture
def client(db_session):
    """FastAPI test client backed by the per-test schema."""
    from rsams.app import app

    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def admin_token(client, accounts, hasher, tokens, settings):
    """Bearer token of a seeded administrator."""
    created = Authenticator(accounts, hasher, tokens, settings).create_account(
        "admin@rsams.edu", "Admin1234", Role.ADMIN
    )
    assert created.ok
    response = client.post(
        "/api/auth/login", json={"email": "admin@rsams.edu", "password": "Admin1234"}
    )
    assert response.status_code == 200
    return response.json()["data"]["token"]
