"""
Database base configuration and session management.

Provides SQLAlchemy base, engine, and session management.
"""

from __future__ import annotations

from typing import Generator

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base
from sqlalchemy.orm import sessionmaker

from casedesk.config import get_config

# SQLAlchemy declarative base for models
Base = declarative_base()

# Global engine and session factory (initialized on first use)
_engine = None
_SessionLocal = None


def get_engine():
    """
    Get or create the database engine.

    Returns:
        SQLAlchemy engine instance
    """
    global _engine

    if _engine is None:
        db_cfg = get_config().database
        connect_args = {}
        if db_cfg.url.startswith("sqlite"):
            # Requests are served from a thread pool
            connect_args["check_same_thread"] = False

        _engine = create_engine(
            db_cfg.url,
            echo=db_cfg.echo,
            connect_args=connect_args,
        )

    return _engine


def get_session_local():
    """
    Get or create the session factory.

    Returns:
        Session factory class
    """
    global _SessionLocal

    if _SessionLocal is None:
        _SessionLocal = sessionmaker(
            autocommit=False,
            autoflush=False,
            bind=get_engine(),
        )

    return _SessionLocal


def get_db() -> Generator:
    """
    Get a database session.

    Yields:
        Database session
    """
    SessionLocal = get_session_local()
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db() -> None:
    """
    Initialize the database (create all tables).

    This should be called after all models are imported.
    """
    from casedesk.database import models  # noqa: F401

    Base.metadata.create_all(bind=get_engine())
