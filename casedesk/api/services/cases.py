"""
Query services for Cases.
"""

from typing import List, Optional
from uuid import UUID

from casedesk.concurrency.models import StoredRecord
from casedesk.concurrency.stores import SqlAlchemyRecordStore
from casedesk.database.models import Case as CaseModel


def get_cases(
    store: SqlAlchemyRecordStore,
    skip: int = 0,
    limit: int = 100,
    status: Optional[str] = None,
    assigned_lawyer_id: Optional[UUID] = None,
) -> List[StoredRecord]:
    """List cases, most recently updated first."""
    query = store.db.query(CaseModel)

    if status:
        query = query.filter(CaseModel.status == status)

    if assigned_lawyer_id:
        query = query.filter(CaseModel.assigned_lawyer_id == assigned_lawyer_id)

    rows = query.order_by(CaseModel.updated_at.desc()).offset(skip).limit(limit).all()
    return [store.to_record(row) for row in rows]
