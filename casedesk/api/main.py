"""
FastAPI main application.

This module sets up the FastAPI application with all routes, middleware,
and configuration.
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from casedesk.api.routers import cases, clients, users
from casedesk.config import get_config

# Get configuration
cfg = get_config()

# Create FastAPI app
app = FastAPI(
    title="Casedesk API",
    description="Case management API with optimistic-concurrency conflict resolution",
    version="0.1.0",
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=cfg.server.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(users.router, prefix="/api/v1/users", tags=["Users"])
app.include_router(cases.router, prefix="/api/v1/cases", tags=["Cases"])
app.include_router(clients.router, prefix="/api/v1/clients", tags=["Clients"])


@app.get("/")
async def root() -> dict:
    """Root endpoint."""
    return {
        "name": "Casedesk API",
        "version": "0.1.0",
        "status": "operational",
    }


@app.get("/health")
async def health_check() -> dict:
    """Health check endpoint."""
    return {"status": "healthy"}
