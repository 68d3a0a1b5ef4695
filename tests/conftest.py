"""
Pytest fixtures for testing
"""
import json
import threading
from unittest.mock import Mock

import pytest
from fastapi.testclient import TestClient
from pywebpush import WebPushException
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from app.api.deps import get_db
from app.application.push_service import PushDispatcher
from app.infrastructure.db import models  # noqa: F401  registers the tables
from app.infrastructure.db.session import Base
from app.main import create_app


@pytest.fixture
def db_engine():
    """
    In-memory SQLite engine for tests.

    StaticPool + check_same_thread=False: handlers and the push dispatcher
    use the store from thread-pool workers.
    """
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return sessionmaker(bind=db_engine, autoflush=False, autocommit=False)


@pytest.fixture
def db_session(session_factory) -> Session:
    """Create database session for tests"""
    session = session_factory()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


class FakePushService:
    """
    Stand-in for pywebpush.webpush.

    statuses maps endpoint -> HTTP status (default 201) or an exception to raise.
    """

    def __init__(self, statuses=None):
        self.statuses = statuses or {}
        self.sent = []
        self._lock = threading.Lock()

    def __call__(self, subscription_info, data, vapid_private_key, vapid_claims, timeout, ttl):
        endpoint = subscription_info["endpoint"]
        with self._lock:
            self.sent.append({
                "endpoint": endpoint,
                "keys": subscription_info["keys"],
                "payload": json.loads(data),
                "claims": dict(vapid_claims),
                "timeout": timeout,
            })
        status = self.statuses.get(endpoint, 201)
        if isinstance(status, Exception):
            raise status
        if status >= 400:
            raise WebPushException(f"Push failed: {status}", response=Mock(status_code=status))
        return Mock(status_code=status)

    @property
    def endpoints(self):
        return {item["endpoint"] for item in self.sent}


class FakeChannel:
    """LiveChannel recording frames in memory"""

    def __init__(self, is_open=True, fail=False):
        self.is_open = is_open
        self.fail = fail
        self.frames = []

    def send_text(self, frame):
        if self.fail:
            raise ConnectionResetError("socket gone")
        self.frames.append(frame)

    @property
    def messages(self):
        return [json.loads(frame) for frame in self.frames]


@pytest.fixture
def push_sender():
    return FakePushService()


@pytest.fixture
def dispatcher(session_factory, push_sender):
    return PushDispatcher(
        session_factory,
        vapid_private_key="test-private-key",
        vapid_subject="mailto:test@example.com",
        concurrency=4,
        timeout=10.0,
        sender=push_sender,
    )


@pytest.fixture
def app(session_factory, dispatcher):
    application = create_app(dispatcher=dispatcher)

    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    application.dependency_overrides[get_db] = override_get_db
    return application


@pytest.fixture
def client(app):
    """Test client; the context manager runs the lifespan and keeps one event loop"""
    with TestClient(app) as test_client:
        yield test_client


def register(client, name, username, password="rahasia123"):
    response = client.post(
        "/api/auth/register",
        json={"name": name, "username": username, "password": password},
    )
    assert response.status_code == 200, response.text
    return response.json()


P256DH = "BNcRdreALRFXTkOOUHK1EtK2wtaz5Ry4YfYCA_0QTpQtUbVlUls0VJXg7A8u-Ts1XbjhazAkj7I99e8QcYP7DkM"
AUTH = "tBHItJI5svbpez7KI4CCXg"


def subscribe(client, user_id, endpoint, p256dh=P256DH, auth=AUTH):
    response = client.post(
        "/api/push/subscribe",
        json={
            "userId": user_id,
            "subscription": {"endpoint": endpoint, "keys": {"p256dh": p256dh, "auth": auth}},
        },
    )
    assert response.status_code == 200, response.text
    return response.json()


@pytest.fixture
def make_channel():
    return FakeChannel


@pytest.fixture
def make_push_service():
    return FakePushService


@pytest.fixture
def register_user(client):
    def _register(name, username, password="rahasia123"):
        return register(client, name, username, password)
    return _register


@pytest.fixture
def subscribe_endpoint(client):
    def _subscribe(user_id, endpoint, **keys):
        return subscribe(client, user_id, endpoint, **keys)
    return _subscribe
