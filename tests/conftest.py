import os
from datetime import date
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.db.base import Base
from app.db.models import GymMembership, Member

TODAY = date(2025, 1, 1)


@pytest.fixture
def client(monkeypatch: pytest.MonkeyPatch) -> TestClient:
    monkeypatch.setenv("DATABASE_URL", "sqlite+pysqlite:///:memory:")

    from app.core.settings import get_settings

    get_settings.cache_clear()

    from app.main import app

    with TestClient(app) as test_client:
        yield test_client

    get_settings.cache_clear()
    os.environ.pop("DATABASE_URL", None)


@pytest.fixture()
def db_session():
    """In-memory SQLite session with all tables created."""
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = SessionLocal()
    yield session
    session.close()


def add_membership(
    session: Session,
    *,
    name: str = "Alice Smith",
    end_date: date = TODAY,
    kind: str = "monthly",
    status: str = "active",
    whatsapp: str | None = "+12125551234",
    phone: str | None = None,
    email: str | None = None,
    preference: str | None = "whatsapp",
) -> GymMembership:
    """Insert a member with one membership and return the membership."""
    member = Member(
        id=uuid4(),
        name_en=name,
        whatsapp_number=whatsapp,
        phone=phone,
        email=email,
        notification_preference=preference,
    )
    membership = GymMembership(id=uuid4(), member=member, type=kind, status=status, end_date=end_date)
    session.add_all([member, membership])
    session.flush()
    return membership


@pytest.fixture()
def make_membership(db_session):
    """Factory fixture: ``make_membership(name=..., end_date=..., ...)``."""

    def _make(**kwargs) -> GymMembership:
        return add_membership(db_session, **kwargs)

    return _make
