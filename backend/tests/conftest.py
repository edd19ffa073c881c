import os

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite://")
os.environ.setdefault("ENVIRONMENT", "development")

from dataclasses import dataclass, field
from datetime import date

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.api.deps import get_db, get_file_storage
from app.core.security import create_access_token
from app.db.base import Base
from app.main import app
from app.models.event import Event
from app.models.room import Room
from app.models.user import UserRole
from app.services import email as email_service
from app.services.accounts import build_user, portal_identity
from app.services.email import EmailDeliveryError
from app.services.storage import FileStorage


@dataclass
class Outbox:
    messages: list[dict] = field(default_factory=list)
    failure: str | None = None

    def send(self, *, to_email: str, subject: str, text_content: str, html_content=None) -> None:
        if self.failure:
            raise EmailDeliveryError(self.failure)
        self.messages.append(
            {"to": to_email, "subject": subject, "text": text_content, "html": html_content}
        )


@pytest.fixture()
def engine():
    test_engine = create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=test_engine)
    yield test_engine
    test_engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture()
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def storage(tmp_path):
    file_storage = FileStorage(tmp_path / "uploads")
    file_storage.ensure_directories()
    return file_storage


@pytest.fixture()
def outbox(monkeypatch):
    box = Outbox()
    monkeypatch.setattr(email_service, "send_email", box.send)
    return box


@pytest.fixture()
def client(monkeypatch, session_factory, storage, outbox):
    # The lifespan hook would create tables on the module-level engine.
    monkeypatch.setattr("app.main.ensure_runtime_schema_compatibility", lambda: None)

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_file_storage] = lambda: storage

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture()
def make_user(db):
    def _make_user(role: UserRole, email: str, name: str = "Test User", **profile):
        user = build_user(name=name, email=email, role=role, password="password123", **profile)
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make_user


def auth_headers(user) -> dict[str, str]:
    token = create_access_token(portal_identity(user))
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def organizer(make_user):
    return make_user(UserRole.organizer, "organizer@example.com", name="Olivia Organizer")


@pytest.fixture()
def faculty_user(make_user):
    return make_user(
        UserRole.faculty,
        "dr.faculty@example.com",
        name="Dr. Faculty",
        institution="City Hospital",
        designation="Professor",
    )


@pytest.fixture()
def room(db):
    hall = Room(name="Hall A", capacity=200)
    db.add(hall)
    db.commit()
    db.refresh(hall)
    return hall


@pytest.fixture()
def second_room(db):
    hall = Room(name="Hall B", capacity=80)
    db.add(hall)
    db.commit()
    db.refresh(hall)
    return hall


@pytest.fixture()
def event(db, organizer):
    conference = Event(
        name="Annual Surgical Congress",
        start_date=date(2026, 3, 10),
        end_date=date(2026, 3, 12),
        created_by_id=organizer.id,
    )
    db.add(conference)
    db.commit()
    db.refresh(conference)
    return conference


def session_row(room_id: str, *, title: str, start: str, end: str, key: str | None = None) -> dict:
    row = {
        "title": title,
        "place": "Main Building",
        "roomId": room_id,
        "description": f"{title} discussion",
        "startTime": start,
        "endTime": end,
    }
    if key:
        row["key"] = key
    return row
