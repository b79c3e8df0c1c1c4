"""
CRUD services shared by versioned entities (cases, clients).
"""

from typing import Any, List, Mapping, Optional
from uuid import UUID

from fastapi import HTTPException
from sqlalchemy.orm import Session

from casedesk.api.services.updates import validation_body
from casedesk.concurrency.errors import RecordNotFound
from casedesk.concurrency.models import Actor, StoredRecord
from casedesk.concurrency.stores import SqlAlchemyRecordStore
from casedesk.database.models import ChangeLog


def create_record(
    store: SqlAlchemyRecordStore, values: Mapping[str, Any], actor: Optional[Actor]
) -> StoredRecord:
    """Validate and insert a new record at version 0."""
    errors = store.registry.field_errors(values)
    if not errors:
        errors = store.missing_references(values)
    if errors:
        raise HTTPException(status_code=422, detail=validation_body(errors))
    return store.create_record(values, actor=actor)


def get_record(store: SqlAlchemyRecordStore, record_id: UUID) -> Optional[StoredRecord]:
    """Get a record by ID, or None."""
    try:
        return store.read_record(str(record_id))
    except RecordNotFound:
        return None


def delete_record(db: Session, model: Any, record_id: UUID) -> bool:
    """Delete a record; its change log is kept."""
    row = db.get(model, record_id)
    if not row:
        return False

    db.delete(row)
    db.commit()
    return True


def get_change_logs(
    db: Session,
    entity_type: str,
    entity_id: UUID,
    skip: int = 0,
    limit: int = 100,
) -> List[ChangeLog]:
    """Change log of one record, newest first."""
    return (
        db.query(ChangeLog)
        .filter(ChangeLog.entity_type == entity_type, ChangeLog.entity_id == entity_id)
        .order_by(ChangeLog.version.desc())
        .offset(skip)
        .limit(limit)
        .all()
    )
