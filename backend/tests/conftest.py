import uuid
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, Session, create_engine

from app.api.deps import SESSION_COOKIE_NAME
from app.core.config import settings
from app.db import session as session_mod
from app.db.session import get_session
from app.main import app
from app.models.user import User, UserSession


@pytest.fixture()
def engine(monkeypatch):
    # SQLite in-memory for unit tests, shared across threads
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    monkeypatch.setattr(session_mod, "engine", engine, raising=False)
    monkeypatch.setattr(settings, "day_offset_minutes", 0)
    return engine


@pytest.fixture()
def session(engine):
    with Session(engine) as s:
        yield s


@pytest.fixture()
def client(engine):
    def override_get_session():
        with Session(engine) as s:
            yield s

    app.dependency_overrides[get_session] = override_get_session

    with TestClient(app) as c:
        yield c

    app.dependency_overrides.clear()


def make_user(session: Session, email: str, name: str | None = None) -> User:
    user = User(id=uuid.uuid4().hex, email=email.lower(), name=name)
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


def login(client: TestClient, session: Session, user: User) -> None:
    token = uuid.uuid4().hex
    session.add(
        UserSession(
            token=token,
            user_id=user.id,
            expires_at=datetime.now(timezone.utc) + timedelta(days=7),
        )
    )
    session.commit()
    client.cookies.set(SESSION_COOKIE_NAME, token)


@pytest.fixture()
def alice(session):
    return make_user(session, "alice@example.com", "Alice")


@pytest.fixture()
def bob(session):
    return make_user(session, "bob@example.com", "Bob")


@pytest.fixture()
def ingest_headers():
    return {"Authorization": f"Bearer {settings.dashboard_token}"}
