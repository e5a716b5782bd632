"""
Shared fixtures.

Every test gets its own in-memory SQLite database. The API's get_db
dependency is overridden to hand out sessions bound to it.
"""

import os

# Must be set before quicknotes.api modules are imported
os.environ.setdefault("ENV", "test")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from quicknotes.api.auth import create_access_token
from quicknotes.api.database import get_db, make_engine
from quicknotes.api.lifecycle import LifecycleController
from quicknotes.api.main import app
from quicknotes.api.models import Base, User
from quicknotes.api.store import SQLNoteStore


@pytest.fixture
def engine():
    engine = make_engine("sqlite://")
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    yield session
    session.close()


def _make_user(session, email):
    user = User(email=email, username=email.split("@")[0], password_hash="not-a-real-hash")
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


@pytest.fixture
def alice(db_session):
    return _make_user(db_session, "alice@example.com")


@pytest.fixture
def bob(db_session):
    return _make_user(db_session, "bob@example.com")


@pytest.fixture
def store(db_session):
    return SQLNoteStore(db_session)


@pytest.fixture
def controller(store):
    return LifecycleController(store)


@pytest.fixture
def client(session_factory):
    """TestClient wired to the per-test database."""

    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


def auth_headers(user):
    return {"Authorization": f"Bearer {create_access_token({'sub': str(user.id)})}"}


@pytest.fixture
def alice_headers(alice):
    return auth_headers(alice)


@pytest.fixture
def bob_headers(bob):
    return auth_headers(bob)
