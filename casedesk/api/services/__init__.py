"""
Service functions between API routes and the database.

These keep the routers thin: record creation and listing, change-log
queries, and translating concurrency outcomes into HTTP responses.
"""
