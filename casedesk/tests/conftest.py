"""
Pytest configuration and fixtures for all tests.

Provides in-memory record stores for the concurrency core and an
in-memory SQLite database for storage and API tests.
"""

from __future__ import annotations

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from casedesk.concurrency.models import Actor
from casedesk.concurrency.registry import CASE_FIELDS
from casedesk.concurrency.stores import InMemoryRecordStore
from casedesk.database.base import Base
from casedesk.database import models  # noqa: F401


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "api: marks tests that exercise the FastAPI app"
    )
    config.addinivalue_line(
        "markers", "slow: marks tests as slow running"
    )


@pytest.fixture
def case_values():
    """Field values of a freshly opened case."""
    return {
        "case_type": "work_injury",
        "case_level": "A",
        "status": "open",
        "department": "Litigation",
        "province": "Zhejiang",
        "city": "Hangzhou",
        "target_amount": "1000",
        "remark": "first call done",
        "insurance_types": ["social"],
    }


@pytest.fixture
def alice():
    return Actor(id="alice", name="Alice", role="lawyer")


@pytest.fixture
def bob():
    return Actor(id="bob", name="Bob", role="assistant")


@pytest.fixture
def memory_store():
    return InMemoryRecordStore(CASE_FIELDS)


@pytest.fixture
def engine():
    """In-memory SQLite engine shared by every connection of one test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(engine)
        engine.dispose()


@pytest.fixture
def db_session(engine):
    session = sessionmaker(bind=engine, autocommit=False, autoflush=False)()
    try:
        yield session
    finally:
        session.close()
