"""Shared test fixtures for the DocGate backend test suite.

Tests run against an in-memory SQLite database (one shared connection via
StaticPool). The schema is dropped and recreated before each test, so tests
can drop a grant-source table to simulate a deployment whose migration has
not been applied yet.
"""

import os

# Configure the app before any docgate import reads settings.
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["LOG_FORMAT"] = "text"
os.environ["JWT_SECRET_KEY"] = "test-secret"
os.environ["CREATE_TABLES_ON_STARTUP"] = "false"

from datetime import datetime, timedelta, timezone
from typing import Optional

import pytest
from fastapi.testclient import TestClient

from docgate.core.config import settings
from docgate.core.token_factory import create_token
from docgate.database import Base, engine, get_db, SessionLocal
from docgate.main import app
from docgate.models import (
    Document,
    DocumentAclEntry,
    Group,
    GroupDocumentLink,
    GroupMembership,
    SharedLink,
)


@pytest.fixture(autouse=True)
def _fresh_schema():
    """Recreate every table before each test for isolation."""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture()
def db():
    """Per-test database session."""
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture()
def client(db):
    """FastAPI TestClient with the DB dependency overridden to use the test session.

    Entering the client runs the lifespan, so the grant-source probe sees the
    schema as it is when this fixture is requested.
    """

    def _override_get_db():
        yield db

    app.dependency_overrides[get_db] = _override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture()
def headers_for():
    """Build Authorization headers for a user id and optional email."""

    def _headers(user_id: str, email: Optional[str] = None) -> dict:
        token = create_token(user_id, settings.jwt_secret_key, email=email)
        return {"Authorization": f"Bearer {token}"}

    return _headers


class Seeder:
    """Small factory for grant data. Every method flushes and commits."""

    def __init__(self, db):
        self.db = db

    def _save(self, obj):
        self.db.add(obj)
        self.db.commit()
        return obj

    def group(self, group_id: str = "g1", name: str = "Group") -> Group:
        return self._save(Group(id=group_id, name=name))

    def document(
        self,
        doc_id: str = "d1",
        owner_id: str = "u1",
        primary_group_id: Optional[str] = None,
        title: str = "Quarterly report",
    ) -> Document:
        return self._save(Document(
            id=doc_id, title=title, owner_id=owner_id, primary_group_id=primary_group_id,
        ))

    def member(self, group_id: str, user_id: str, role: str = "member", is_active: bool = True) -> GroupMembership:
        return self._save(GroupMembership(
            group_id=group_id, user_id=user_id, role=role, is_active=is_active,
        ))

    def link(self, group_id: str, document_id: str, access_level: str = "read") -> GroupDocumentLink:
        return self._save(GroupDocumentLink(
            group_id=group_id, document_id=document_id, access_level=access_level,
        ))

    def acl(self, document_id: str, subject_type: str, subject_id: str, role: str = "view") -> DocumentAclEntry:
        return self._save(DocumentAclEntry(
            document_id=document_id, subject_type=subject_type, subject_id=subject_id, role=role,
        ))

    def share(
        self,
        document_id: str,
        email: Optional[str] = None,
        user_id: Optional[str] = None,
        access_level: str = "view",
        expires_in: Optional[timedelta] = None,
        is_active: bool = True,
    ) -> SharedLink:
        expires_at = datetime.now(timezone.utc) + expires_in if expires_in is not None else None
        return self._save(SharedLink(
            document_id=document_id,
            shared_with_email=email,
            shared_with_user=user_id,
            access_level=access_level,
            expires_at=expires_at,
            is_active=is_active,
        ))


@pytest.fixture()
def seed(db) -> Seeder:
    return Seeder(db)


@pytest.fixture()
def drop_table(db):
    """Drop a grant-source table to simulate an unprovisioned store."""

    def _drop(model) -> None:
        db.commit()
        model.__table__.drop(bind=engine)

    return _drop
