"""
FastAPI service layer for casedesk.

Routers expose cases, clients and users; every update to a versioned
entity goes through the concurrency core in ``casedesk.concurrency``.
"""
