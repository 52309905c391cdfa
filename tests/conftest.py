"""Shared test fixtures for the Lectern test suite.

Tests run against a throwaway SQLite file by default (set TEST_DATABASE_URL
to point at PostgreSQL instead). Tables are created on app import; each
test starts from empty tables.
"""

import os
import tempfile

# Use the test database before any app imports.
os.environ["DATABASE_URL"] = os.environ.get(
    "TEST_DATABASE_URL",
    f"sqlite:///{os.path.join(tempfile.mkdtemp(prefix='lectern-'), 'test.db')}",
)
os.environ["LOG_FORMAT"] = "text"

from typing import List

import pytest
from fastapi.testclient import TestClient
from pydantic import BaseModel

from lectern.database import Base, get_db, SessionLocal
from lectern.main import app
from lectern.registry import registry
from lectern.schemas.settings import VersioningPolicyUpdate
from lectern.services import ContentService, VersioningPolicyProvider


class PostSchema(BaseModel):
    title: str
    body: str = ""
    tags: List[str] = []


registry.register("post", PostSchema)


@pytest.fixture(autouse=True)
def _clean_tables():
    """Empty all tables before each test for isolation.

    Runs before the test (not after) so test failures leave data
    available for debugging.
    """
    db = SessionLocal()
    try:
        for table in reversed(Base.metadata.sorted_tables):
            db.execute(table.delete())
        db.commit()
    finally:
        db.close()
    yield


@pytest.fixture()
def db():
    """Per-test database session."""
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture()
def service(db):
    """ContentService over the test session and the shared registry."""
    return ContentService(db, registry)


@pytest.fixture()
def client(db):
    """FastAPI TestClient with the DB dependency overridden to use the test session."""

    def _override_get_db():
        yield db

    app.dependency_overrides[get_db] = _override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def set_policy(db, **changes):
    """Write versioning settings through the policy provider."""
    return VersioningPolicyProvider(db).update_policy(VersioningPolicyUpdate(**changes))


def make_post(title: str = "Hello", body: str = "First post.", **overrides) -> dict:
    """Factory for post payloads."""
    payload = {"title": title, "body": body, "tags": []}
    payload.update(overrides)
    return payload
