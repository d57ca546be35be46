# tests/conftest.py
"""
Pytest configuration and shared fixtures.

Every test gets its own SQLite file under ``tmp_path`` so stores never share
state. Coroutines are driven with ``asyncio.run``.
"""

import pytest
from fastapi.testclient import TestClient

from albumauth.application.services.auth_service import AuthService
from albumauth.core.app_factory import create_application
from albumauth.domain.models import NewAccount
from albumauth.infrastructure.persistence.sqlite import SQLitePersistence
from albumauth.services.otp import StaticOtpIssuer
from albumauth.services.passwords import PasswordHasher
from albumauth.services.session_store import SessionStore


# ============================================================
# Store Fixtures
# ============================================================

@pytest.fixture
def hasher():
    return PasswordHasher()


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "auth.db"


@pytest.fixture
def persistence(db_path, hasher):
    store = SQLitePersistence(db_path, hasher)
    yield store
    store.close()


@pytest.fixture
def session_store(persistence):
    return SessionStore(persistence)


# ============================================================
# Service Fixtures
# ============================================================

@pytest.fixture
def auth_service(persistence, session_store):
    """Auth service wired with the static 111111 OTP."""
    return AuthService(persistence, session_store, StaticOtpIssuer())


@pytest.fixture
def recorded_states(auth_service):
    """Every state the service publishes, in order."""
    states = []
    auth_service.state_feed.add_listener(states.append)
    return states


# ============================================================
# Sample Data
# ============================================================

@pytest.fixture
def bob():
    return NewAccount(
        username="bob",
        email="b@x.com",
        phone_number="01812345678",
        password="secret1",
    )


@pytest.fixture
def alice():
    return NewAccount(
        username="alice",
        email="",
        phone_number="01712345678",
        password="secret",
    )


# ============================================================
# HTTP Client
# ============================================================

@pytest.fixture
def client(tmp_path, monkeypatch):
    """TestClient against a fresh application and database."""
    monkeypatch.setenv("DATABASE_PATH", str(tmp_path / "api.db"))
    monkeypatch.setenv("OTP_PROVIDER", "static")
    monkeypatch.setenv("OTP_STATIC_CODE", "111111")
    monkeypatch.setenv("LOGIN_REQUIRES_VERIFICATION", "false")
    monkeypatch.setenv("ACCOUNTS_VERIFIED_ON_SIGNUP", "true")
    app = create_application()
    with TestClient(app) as c:
        yield c
