"""
API router for Clients.

Clients are shared between the cases opened for them, so they use the same
optimistic-concurrency protocol as cases.
"""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from casedesk.api.dependencies import (
    get_client_coordinator,
    get_client_store,
    get_current_actor,
    get_database_session,
)
from casedesk.api.schemas import ChangeLogEntry, Client, ClientCreate, ClientUpdateRequest
from casedesk.api.services import records as record_service
from casedesk.api.services.updates import apply_update
from casedesk.concurrency.coordinator import ResolutionCoordinator
from casedesk.concurrency.models import Actor
from casedesk.concurrency.stores import SqlAlchemyRecordStore

router = APIRouter()


@router.post("/", response_model=Client, status_code=201)
def create_client(
    client: ClientCreate,
    store: SqlAlchemyRecordStore = Depends(get_client_store),
    actor: Actor = Depends(get_current_actor),
) -> Client:
    """Create a new client."""
    record = record_service.create_record(store, client.to_values(), actor)
    return Client.model_validate(record.to_dict())


@router.get("/{client_id}", response_model=Client)
def get_client(
    client_id: UUID,
    store: SqlAlchemyRecordStore = Depends(get_client_store),
) -> Client:
    """Get a client by ID."""
    record = record_service.get_record(store, client_id)
    if not record:
        raise HTTPException(status_code=404, detail="Client not found")
    return Client.model_validate(record.to_dict())


@router.put("/{client_id}", response_model=Client)
def update_client(
    client_id: UUID,
    request: ClientUpdateRequest,
    coordinator: ResolutionCoordinator = Depends(get_client_coordinator),
    actor: Actor = Depends(get_current_actor),
) -> Client:
    """Update a client; concurrent writes are reported with HTTP 409."""
    record = apply_update(
        coordinator,
        str(client_id),
        request.payload.to_values(),
        request.meta.to_meta(),
        actor,
    )
    return Client.model_validate(record.to_dict())


@router.get("/{client_id}/change-logs", response_model=List[ChangeLogEntry])
def list_client_change_logs(
    client_id: UUID,
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
    db: Session = Depends(get_database_session),
) -> List[ChangeLogEntry]:
    """What changed in each committed write of a client, newest first."""
    logs = record_service.get_change_logs(db, "client", client_id, skip=skip, limit=limit)
    return [ChangeLogEntry.model_validate(log) for log in logs]
