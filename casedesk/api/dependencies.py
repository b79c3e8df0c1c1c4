"""
FastAPI dependencies for database sessions, the acting user and the
per-entity concurrency coordinators.
"""

from typing import Generator
from uuid import UUID

from fastapi import Depends, HTTPException, Request
from sqlalchemy.orm import Session

from casedesk.concurrency.coordinator import ResolutionCoordinator
from casedesk.concurrency.models import Actor
from casedesk.concurrency.registry import CASE_FIELDS, CLIENT_FIELDS
from casedesk.concurrency.stores import SqlAlchemyRecordStore
from casedesk.database.base import get_db
from casedesk.database.models import Case, Client, User


def get_database_session() -> Generator[Session, None, None]:
    """
    Dependency to get a database session.

    Yields:
        Database session
    """
    yield from get_db()


def get_current_actor(request: Request, db: Session = Depends(get_database_session)) -> Actor:
    """Resolve the acting user from the ``X-User-Id`` header.

    Whether that user may write a given field set is decided upstream;
    here the user only has to exist.
    """
    raw = request.headers.get("x-user-id")
    if not raw:
        raise HTTPException(status_code=401, detail="Missing X-User-Id header")
    try:
        uid = UUID(str(raw))
    except ValueError:
        raise HTTPException(status_code=401, detail="Invalid X-User-Id header")
    user = db.get(User, uid)
    if not user:
        raise HTTPException(status_code=401, detail="User not found")
    return Actor(id=str(user.id), name=user.name, role=user.role)


def get_case_store(db: Session = Depends(get_database_session)) -> SqlAlchemyRecordStore:
    return SqlAlchemyRecordStore(db, Case, CASE_FIELDS)


def get_client_store(db: Session = Depends(get_database_session)) -> SqlAlchemyRecordStore:
    return SqlAlchemyRecordStore(db, Client, CLIENT_FIELDS)


def get_case_coordinator(
    store: SqlAlchemyRecordStore = Depends(get_case_store),
) -> ResolutionCoordinator:
    return ResolutionCoordinator(store)


def get_client_coordinator(
    store: SqlAlchemyRecordStore = Depends(get_client_store),
) -> ResolutionCoordinator:
    return ResolutionCoordinator(store)
