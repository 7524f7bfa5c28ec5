from __future__ import annotations

import os

# parkops.config reads these at import time
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET"] = "parkops-test-secret-0123456789abcdef"
os.environ["BCRYPT_ROUNDS"] = "4"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from parkops import errors
from parkops.auth import create_access_token, hash_password
from parkops.db import Base, get_db
from parkops.main import build_app
from parkops.models.user import User


class FakeNotifier:
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.calls = []

    def send_mission_notification(self, mission_payload, username):
        self.calls.append((mission_payload, username))
        if self.fail:
            raise errors.UpstreamError("push service unavailable")
        return {"data": []}


@pytest.fixture
def engine():
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@pytest.fixture
def db(session_factory):
    with session_factory() as s:
        yield s


@pytest.fixture
def notifier():
    return FakeNotifier()


@pytest.fixture
def app(session_factory, notifier):
    app = build_app(notifier=notifier)

    def _get_db():
        s = session_factory()
        try:
            yield s
        finally:
            s.close()

    app.dependency_overrides[get_db] = _get_db
    return app


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def make_user(db):
    def _make(username="worker1", password="secret", tokens=None):
        user = User(
            username=username,
            password_hash=hash_password(password),
            push_tokens=list(tokens or []),
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user
    return _make


@pytest.fixture
def worker(make_user):
    return make_user()


@pytest.fixture
def auth_headers(worker):
    return {"Authorization": f"Bearer {create_access_token(worker)}"}


@pytest.fixture
def mission_body():
    return {
        "username": "worker1",
        "id": "M-1",
        "date": "2025-11-26",
        "cashier": "John Doe",
        "machineName": "Machine A1",
        "qrCode": "QR12345",
        "collect": {
            "notes": {"amount": 500, "completed": True},
            "coins": {"amount": 200},
        },
        "maintenance": ["Clean screen", {"task": {"en": "Check printer", "fr": "Vérifier l'imprimante"}}],
    }
