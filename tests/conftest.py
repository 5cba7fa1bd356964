import os
import sys
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Add the project root to the Python path
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config import settings
from database import Base, get_db
from main import app
from models import User, Profile, Post, Follower
from routers.auth import create_access_token
from services.push_service import PushEndpointGone, PushDeliveryError
from services.task_queue import task_queue

# Test database setup
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


# Fixtures
@pytest.fixture(scope="function")
def test_db():
    # Create all tables
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        # Clean up
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def scheduled_pushes(monkeypatch):
    """Records push scheduling instead of talking to the Celery broker."""
    scheduled = []
    monkeypatch.setattr(task_queue, "enqueue_push", lambda notification_id: scheduled.append(notification_id))
    return scheduled


@pytest.fixture
def push_configured(monkeypatch):
    monkeypatch.setattr(settings, "WEB_PUSH_PUBLIC_KEY", "test-public-key")
    monkeypatch.setattr(settings, "WEB_PUSH_PRIVATE_KEY", "test-private-key")
    monkeypatch.setattr(settings, "SITE_URL", "https://tunecircle.test")


@pytest.fixture(scope="function")
def client(test_db):
    """Create a test client that uses the test database."""
    def override_get_db():
        # The session is managed by the test_db fixture
        yield test_db

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


# Model factories
@pytest.fixture
def create_user(test_db):
    """Factory to create a test user, with a profile when display_name is given."""
    counter = {"n": 0}

    def _create_user(name=None, display_name=None, **kwargs):
        counter["n"] += 1
        user = User(
            name=name or f"user{counter['n']}",
            email=kwargs.pop("email", f"user{counter['n']}@example.com"),
            **kwargs
        )
        test_db.add(user)
        test_db.flush()
        if display_name is not None:
            test_db.add(Profile(user_id=user.id, display_name=display_name))
        test_db.commit()
        test_db.refresh(user)
        return user

    return _create_user


@pytest.fixture
def create_post(test_db):
    """Factory to create a test post."""
    def _create_post(author, title="Test track", **kwargs):
        post = Post(author_id=author.id, title=title, content=kwargs.pop("content", ""), **kwargs)
        test_db.add(post)
        test_db.commit()
        test_db.refresh(post)
        return post

    return _create_post


@pytest.fixture
def follow(test_db):
    """Insert a follow edge directly, without notifications."""
    def _follow(follower, followed):
        test_db.add(Follower(follower_id=follower.id, followed_id=followed.id))
        test_db.commit()

    return _follow


@pytest.fixture
def auth_headers():
    def _auth_headers(user):
        return {"Authorization": f"Bearer {create_access_token(user.id)}"}

    return _auth_headers


class FakeTransport:
    """Push transport double; endpoints listed in ``failures`` raise that error."""

    def __init__(self, failures=None):
        self.failures = failures or {}
        self.sent = []

    def send(self, target, payload):
        error = self.failures.get(target.endpoint)
        if error is not None:
            raise error
        self.sent.append((target.endpoint, payload))


@pytest.fixture
def fake_transport():
    return FakeTransport()


@pytest.fixture
def failing_transport():
    def _failing_transport(gone=(), failed=()):
        failures = {endpoint: PushEndpointGone("gone") for endpoint in gone}
        failures.update({endpoint: PushDeliveryError("server error") for endpoint in failed})
        return FakeTransport(failures)

    return _failing_transport
