"""
Shared pytest fixtures for the membership portal tests.

This module points the store at a temporary SQLite database before any
application module is imported, recreates the schema for every test, and
provides users, managers, a recording notification sink and a FastAPI
TestClient.
"""
import os
import sys
import tempfile
from pathlib import Path

import pytest

# Add src/ to Python path for imports
SRC_DIR = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(SRC_DIR))

_TEST_DB_DIR = tempfile.mkdtemp(prefix="membership-portal-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{_TEST_DB_DIR}/test.db"
os.environ["JWT_SECRET_KEY"] = "test-secret-key-for-testing-only"
os.environ["DISCORD_WEBHOOK_URL"] = ""
os.environ["DISCORD_VERIFY_URL"] = ""

from fastapi.testclient import TestClient  # noqa: E402

from core.database import SessionLocal, engine  # noqa: E402
from core.dependencies import get_discord_verifier, get_notification_sink  # noqa: E402
from models.base import Base  # noqa: E402
from schemas.user import User  # noqa: E402
from utils import identity_gateway  # noqa: E402
from utils.converters import model_to_user  # noqa: E402
from utils.discord_verifier import DiscordVerifier  # noqa: E402
from utils.notification_sink import NotificationSink  # noqa: E402
from utils.user_repository import UserRepository  # noqa: E402

DEFAULT_PASSWORD = "secret123"


class RecordingSink(NotificationSink):
    """Notification sink that keeps emitted events in memory."""

    def __init__(self):
        self.events = []

    def emit(self, kind, payload):
        self.events.append((kind, payload))

    def kinds(self):
        return [kind for kind, _ in self.events]


class StubDiscordVerifier(DiscordVerifier):
    """Verifier answering from a fixed set of known handles."""

    def __init__(self, known=("known#0001",)):
        super().__init__(verify_url="http://verify.test/discord/role")
        self.known = set(known)
        self.calls = []

    def verify(self, username):
        self.calls.append(username)
        return username in self.known


# ==============================================================================
# Environment Setup Fixtures
# ==============================================================================

@pytest.fixture(autouse=True)
def fresh_schema():
    """Recreate all tables so every test starts from an empty store."""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture(autouse=True)
def fast_password_hashing(monkeypatch):
    """Use the cheapest bcrypt cost factor in tests."""
    monkeypatch.setattr(identity_gateway, "BCRYPT_ROUNDS", 4)


@pytest.fixture
def db():
    """Request-style database session."""
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def discord_verifier():
    return StubDiscordVerifier()


# ==============================================================================
# Data Factories
# ==============================================================================

@pytest.fixture
def make_user(db):
    """Factory creating an active user with a sign-in identity."""

    def _make_user(
        email="student@example.com",
        full_name="Student One",
        role="student",
        password=DEFAULT_PASSWORD,
        with_identity=True,
    ) -> User:
        user = User(email=email, full_name=full_name, role=role, invitation_accepted=True)
        UserRepository(db).create(user)
        if with_identity:
            identity_gateway.IdentityGateway(db).sign_up(
                email, password, full_name=full_name, identity_id=user.id
            )
        return model_to_user(UserRepository(db).find_by_id(user.id))

    return _make_user


@pytest.fixture
def student(make_user):
    return make_user()


@pytest.fixture
def admin(make_user):
    return make_user(email="admin@example.com", full_name="Admin One", role="admin")


@pytest.fixture
def reload_user():
    """Read a user through a fresh session, bypassing any identity map."""

    def _reload_user(user_id) -> User:
        session = SessionLocal()
        try:
            return model_to_user(UserRepository(session).find_by_id(user_id))
        finally:
            session.close()

    return _reload_user


# ==============================================================================
# HTTP Fixtures
# ==============================================================================

@pytest.fixture
def client(sink, discord_verifier):
    """TestClient with the notification sink and Discord verifier replaced."""
    from app import app

    app.dependency_overrides[get_notification_sink] = lambda: sink
    app.dependency_overrides[get_discord_verifier] = lambda: discord_verifier
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers(client):
    """Sign in through the API and return the Authorization header."""

    def _auth_headers(email, password=DEFAULT_PASSWORD):
        response = client.post("/auth/login", json={"email": email, "password": password})
        assert response.status_code == 200, response.text
        return {"Authorization": f"Bearer {response.json()['token']}"}

    return _auth_headers
