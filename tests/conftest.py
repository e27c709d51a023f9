"""Shared fixtures: fakeredis store, in-memory SQLite, recording mailer, API client.

Every test gets an empty Redis and an empty database. The API client runs over
https so the Secure session cookie is sent back like a browser would.
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SESSION_SECRET", "test-secret")

from urllib.parse import parse_qs, urlparse

import fakeredis
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import models
from app import app
from backend import RedisBackend, get_redis_backend
from database import Base, get_db
from mailer import DeliveryResult, MailgunMailer, get_mailer


class RecordingMailer(MailgunMailer):
    """Captures outgoing mail instead of calling Mailgun."""

    def __init__(self):
        super().__init__(api_key="key-test", domain="mg.example.com", sender="noreply@example.com")
        self.sent = []
        self.fail = False

    async def send(self, to, subject, text, html=None):
        self.sent.append({"to": to, "subject": subject, "text": text, "html": html})
        if self.fail:
            return DeliveryResult(success=False, error="mailgun is down")
        return DeliveryResult(success=True)

    def last_link(self) -> str:
        return self.sent[-1]["text"].rsplit(" ", 1)[-1]

    def last_token(self) -> str:
        return parse_qs(urlparse(self.last_link()).query)["token"][0]


@pytest.fixture
def fake_redis():
    return fakeredis.FakeRedis(decode_responses=True)


@pytest.fixture
def store(fake_redis):
    return RedisBackend(client=fake_redis)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def mailer():
    return RecordingMailer()


@pytest.fixture
def make_user(session_factory):
    def _make_user(email: str, role: str = "facilitator") -> models.User:
        with session_factory() as session:
            user = models.User(email=email, role=role)
            session.add(user)
            session.commit()
            return user
    return _make_user


@pytest.fixture
def client(store, session_factory, mailer):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_redis_backend] = lambda: store
    app.dependency_overrides[get_mailer] = lambda: mailer

    yield TestClient(app, base_url="https://testserver")

    app.dependency_overrides.clear()


@pytest.fixture
def login(client, mailer, make_user):
    """Create a user, walk the magic link flow and leave the cookie on a client."""

    def _login(email: str, role: str = "facilitator", http: TestClient = None) -> models.User:
        http = http or client
        user = make_user(email, role)
        res = http.post("/api/auth/login", json={"email": email})
        assert res.status_code == 200
        res = http.get("/api/auth/verify", params={"token": mailer.last_token()})
        assert res.status_code == 200
        return user

    return _login


@pytest.fixture
def facilitator(login):
    return login("facilitator@example.com", "facilitator")


@pytest.fixture
def admin(login):
    return login("admin@example.com", "admin")


@pytest.fixture
def anonymous_client(client):
    """A second client sharing the same app overrides but without any cookie."""
    return TestClient(app, base_url="https://testserver")
