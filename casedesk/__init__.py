# casedesk/__init__.py

"""
Case management back office for law firms and claims teams.

This package centralizes:
- config (database URL, CORS origins, display settings)
- the optimistic-concurrency core used by every shared record
- the FastAPI surface and its SQLAlchemy storage.
"""

__all__ = ["config"]
