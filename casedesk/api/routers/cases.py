"""
API router for Cases.
"""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from casedesk.api.dependencies import (
    get_case_coordinator,
    get_case_store,
    get_current_actor,
    get_database_session,
)
from casedesk.api.schemas import Case, CaseCreate, CaseUpdateRequest, ChangeLogEntry
from casedesk.api.services import cases as case_service
from casedesk.api.services import records as record_service
from casedesk.api.services.updates import apply_update
from casedesk.concurrency.coordinator import ResolutionCoordinator
from casedesk.concurrency.models import Actor
from casedesk.concurrency.stores import SqlAlchemyRecordStore
from casedesk.database.models import Case as CaseModel

router = APIRouter()


@router.post("/", response_model=Case, status_code=201)
def create_case(
    case: CaseCreate,
    store: SqlAlchemyRecordStore = Depends(get_case_store),
    actor: Actor = Depends(get_current_actor),
) -> Case:
    """Open a new case at version 0."""
    record = record_service.create_record(store, case.to_values(), actor)
    return Case.model_validate(record.to_dict())


@router.get("/", response_model=List[Case])
def list_cases(
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
    status: Optional[str] = Query(None, description="Filter by case status"),
    assigned_lawyer_id: Optional[UUID] = Query(None, description="Filter by assigned lawyer"),
    store: SqlAlchemyRecordStore = Depends(get_case_store),
) -> List[Case]:
    """List cases."""
    records = case_service.get_cases(
        store, skip=skip, limit=limit, status=status, assigned_lawyer_id=assigned_lawyer_id
    )
    return [Case.model_validate(record.to_dict()) for record in records]


@router.get("/{case_id}", response_model=Case)
def get_case(
    case_id: UUID,
    store: SqlAlchemyRecordStore = Depends(get_case_store),
) -> Case:
    """Get a case by ID, including the version an editor must send back."""
    record = record_service.get_record(store, case_id)
    if not record:
        raise HTTPException(status_code=404, detail="Case not found")
    return Case.model_validate(record.to_dict())


@router.put("/{case_id}", response_model=Case)
def update_case(
    case_id: UUID,
    request: CaseUpdateRequest,
    coordinator: ResolutionCoordinator = Depends(get_case_coordinator),
    actor: Actor = Depends(get_current_actor),
) -> Case:
    """
    Update a case using optimistic concurrency.

    Clients send the version and field values they loaded along with the
    fields they changed. If someone else wrote the case in between, the
    request fails with HTTP 409 and a field-by-field diff; disjoint edits can
    be resubmitted unchanged with ``meta.resolve_mode = "merge"``.
    """
    record = apply_update(
        coordinator,
        str(case_id),
        request.payload.to_values(),
        request.meta.to_meta(),
        actor,
    )
    return Case.model_validate(record.to_dict())


@router.delete("/{case_id}", status_code=204)
def delete_case(
    case_id: UUID,
    db: Session = Depends(get_database_session),
    actor: Actor = Depends(get_current_actor),
) -> None:
    """Delete a case."""
    if not record_service.delete_record(db, CaseModel, case_id):
        raise HTTPException(status_code=404, detail="Case not found")


@router.get("/{case_id}/change-logs", response_model=List[ChangeLogEntry])
def list_case_change_logs(
    case_id: UUID,
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
    db: Session = Depends(get_database_session),
) -> List[ChangeLogEntry]:
    """What changed in each committed write of a case, newest first."""
    logs = record_service.get_change_logs(db, "case", case_id, skip=skip, limit=limit)
    return [ChangeLogEntry.model_validate(log) for log in logs]
