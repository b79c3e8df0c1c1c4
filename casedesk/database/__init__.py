"""
Database layer for casedesk.

This package provides:
- SQLAlchemy models for users, cases, clients and their change logs
- Database connection and session management
- Alembic migration support
"""

from casedesk.database.base import Base, get_db, get_engine, get_session_local, init_db

__all__ = ["Base", "get_db", "get_engine", "get_session_local", "init_db"]
