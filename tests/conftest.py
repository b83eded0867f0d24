# tests/conftest.py

from __future__ import annotations

from typing import Callable

import pytest
from passlib.context import CryptContext
from sqlalchemy.orm import Session, sessionmaker

from auth import security
from taskboard import user_store
from taskboard.context import WorkflowContext
from taskboard.db import create_db_engine
from taskboard.identity import UserIdentity
from taskboard.models import Base, Role, User
from taskboard.notifier import NotificationOutbox, Notifier

from .fakes import FakeEmailClient


@pytest.fixture(autouse=True)
def fast_password_hashing(monkeypatch):
    """bcrypt at its minimum cost keeps account fixtures quick."""
    monkeypatch.setattr(
        security, "pwd_context", CryptContext(schemes=["bcrypt"], bcrypt__rounds=4)
    )


@pytest.fixture()
def engine():
    eng = create_db_engine("sqlite://")
    Base.metadata.create_all(eng)
    yield eng
    eng.dispose()


@pytest.fixture()
def db(engine) -> Session:
    session = sessionmaker(bind=engine, autocommit=False, autoflush=False)()
    yield session
    session.close()


@pytest.fixture()
def admin(db: Session) -> User:
    return user_store.create_user(
        db, email="admin@example.com", password="secret123", full_name="Ada Admin", role=Role.ADMIN
    )


@pytest.fixture()
def employee(db: Session) -> User:
    return user_store.create_user(
        db, email="employee42@example.com", password="secret123", full_name="Erin Employee"
    )


@pytest.fixture()
def other_employee(db: Session) -> User:
    return user_store.create_user(
        db, email="other@example.com", password="secret123", full_name="Oscar Other"
    )


@pytest.fixture()
def email_client() -> FakeEmailClient:
    return FakeEmailClient()


@pytest.fixture()
def outbox(email_client: FakeEmailClient) -> NotificationOutbox:
    return NotificationOutbox(Notifier(email_client))


@pytest.fixture()
def make_ctx(db: Session, outbox: NotificationOutbox) -> Callable[[User], WorkflowContext]:
    """Workflow context acting as the given user, sharing the test outbox."""

    def _make(user: User) -> WorkflowContext:
        return WorkflowContext(db=db, identity=UserIdentity.from_user(user), outbox=outbox)

    return _make
