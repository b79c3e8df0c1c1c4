"""Record stores: SQLAlchemy-backed and in-process.

Both implement the same compare-and-swap contract. The SQLAlchemy store
relies on a single conditional ``UPDATE ... WHERE version = :expected``;
the in-memory store performs the equivalent check-and-write under a lock.
"""

from __future__ import annotations

import copy
import threading
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from casedesk.concurrency.errors import RecordNotFound, VersionMismatch
from casedesk.concurrency.ledger import RecordStore, build_changes
from casedesk.concurrency.models import Actor, ChangeDetail, StoredRecord
from casedesk.concurrency.registry import FieldRegistry
from casedesk.concurrency.values import normalize_wire, to_storage, to_wire
from casedesk.database.models import ChangeLog, User
from casedesk.logging_utils import get_logger

logger = get_logger(__name__)


def _as_uuid(value: Any) -> Optional[uuid.UUID]:
    if value is None or isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except ValueError:
        return None


def _aware(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite hands back naive datetimes for timezone-aware columns
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class SqlAlchemyRecordStore(RecordStore):
    """Record store over one ORM model with ``id``, ``version``, ``updated_*`` columns."""

    def __init__(self, db: Session, model: Any, registry: FieldRegistry):
        self.db = db
        self.model = model
        self.registry = registry

    def to_record(self, row: Any) -> StoredRecord:
        values = {spec.name: to_wire(spec.kind, getattr(row, spec.name)) for spec in self.registry}
        updated_by = None
        if row.updated_by_id is not None:
            user = self.db.get(User, row.updated_by_id)
            updated_by = Actor(
                id=str(row.updated_by_id),
                name=user.name if user else None,
                role=user.role if user else None,
            )
        return StoredRecord(
            record_id=str(row.id),
            version=row.version,
            values=values,
            updated_at=_aware(row.updated_at),
            updated_by=updated_by,
        )

    def read_record(self, record_id: str) -> StoredRecord:
        uid = _as_uuid(record_id)
        if uid is None:
            raise RecordNotFound(self.entity_type, record_id)
        row = self.db.execute(
            select(self.model)
            .where(self.model.id == uid)
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        if row is None:
            raise RecordNotFound(self.entity_type, record_id)
        return self.to_record(row)

    def missing_references(self, values: Mapping[str, Any]) -> List[Dict[str, str]]:
        wanted: Dict[str, uuid.UUID] = {}
        for spec in self.registry:
            if spec.references != "user" or spec.name not in values:
                continue
            # Unparseable ids are already reported by field validation
            uid = _as_uuid(values[spec.name])
            if uid is not None:
                wanted[spec.name] = uid
        if not wanted:
            return []
        found = set(
            self.db.execute(select(User.id).where(User.id.in_(set(wanted.values())))).scalars()
        )
        return [
            {"field": name, "message": "refers to an unknown user"}
            for name, uid in wanted.items()
            if uid not in found
        ]

    def _storage_values(self, fields: Mapping[str, Any]) -> Dict[str, Any]:
        return {name: to_storage(self.registry.kind(name), value) for name, value in fields.items()}

    def _change_log(
        self,
        record_id: uuid.UUID,
        version: int,
        action: str,
        actor: Optional[Actor],
        changes: List[ChangeDetail],
        written_at: datetime,
    ) -> ChangeLog:
        return ChangeLog(
            entity_type=self.entity_type,
            entity_id=record_id,
            version=version,
            action=action,
            actor_id=_as_uuid(actor.id) if actor else None,
            actor_name=actor.name if actor else None,
            actor_role=actor.role if actor else None,
            changes=[change.to_dict() for change in changes],
            created_at=written_at,
        )

    def create_record(self, values: Mapping[str, Any], actor: Optional[Actor] = None) -> StoredRecord:
        now = datetime.now(timezone.utc)
        actor_id = _as_uuid(actor.id) if actor else None
        row = self.model(
            **self._storage_values(values),
            version=0,
            created_at=now,
            updated_at=now,
            updated_by_id=actor_id,
        )
        if hasattr(self.model, "created_by_id"):
            row.created_by_id = actor_id
        try:
            self.db.add(row)
            self.db.flush()
            changes = build_changes({}, values, self.registry)
            self.db.add(self._change_log(row.id, 0, "create", actor, changes, now))
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise
        logger.info(f"[STORE] Created {self.entity_type} {row.id}")
        return self.read_record(str(row.id))

    def _peek_version(self, uid: uuid.UUID) -> Optional[int]:
        return self.db.execute(
            select(self.model.version).where(self.model.id == uid)
        ).scalar_one_or_none()

    def conditional_write(
        self,
        record_id: str,
        expected_version: int,
        fields: Mapping[str, Any],
        actor: Optional[Actor],
        action: str,
        changes: List[ChangeDetail],
        written_at: datetime,
    ) -> int:
        uid = _as_uuid(record_id)
        if uid is None:
            raise RecordNotFound(self.entity_type, record_id)

        stmt = (
            update(self.model)
            .where(self.model.id == uid, self.model.version == expected_version)
            .values(
                **self._storage_values(fields),
                version=self.model.version + 1,
                updated_at=written_at,
                updated_by_id=_as_uuid(actor.id) if actor else None,
            )
            .execution_options(synchronize_session=False)
        )
        try:
            result = self.db.execute(stmt)
            if result.rowcount != 1:
                self.db.rollback()
                actual = self._peek_version(uid)
                if actual is None:
                    raise RecordNotFound(self.entity_type, record_id)
                raise VersionMismatch(self.entity_type, record_id, expected_version, actual)
            new_version = expected_version + 1
            self.db.add(self._change_log(uid, new_version, action, actor, changes, written_at))
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise
        return new_version


class InMemoryRecordStore(RecordStore):
    """Process-local record store; used for embedding the core and in tests."""

    def __init__(self, registry: FieldRegistry):
        self.registry = registry
        self._lock = threading.Lock()
        self._records: Dict[str, StoredRecord] = {}
        self.change_logs: List[Dict[str, Any]] = []

    def read_record(self, record_id: str) -> StoredRecord:
        with self._lock:
            record = self._records.get(record_id)
            if record is None:
                raise RecordNotFound(self.entity_type, record_id)
            return copy.deepcopy(record)

    def create_record(self, values: Mapping[str, Any], actor: Optional[Actor] = None) -> StoredRecord:
        now = datetime.now(timezone.utc)
        record_id = str(uuid.uuid4())
        stored = {spec.name: normalize_wire(spec.kind, values.get(spec.name)) for spec in self.registry}
        record = StoredRecord(record_id, 0, stored, now, actor)
        with self._lock:
            self._records[record_id] = record
            self._log(record_id, 0, "create", actor, build_changes({}, values, self.registry), now)
        return copy.deepcopy(record)

    def _log(
        self,
        record_id: str,
        version: int,
        action: str,
        actor: Optional[Actor],
        changes: List[ChangeDetail],
        written_at: datetime,
    ) -> None:
        self.change_logs.append(
            {
                "entity_type": self.entity_type,
                "entity_id": record_id,
                "version": version,
                "action": action,
                "actor": actor.to_dict() if actor else None,
                "changes": [change.to_dict() for change in changes],
                "created_at": written_at,
            }
        )

    def conditional_write(
        self,
        record_id: str,
        expected_version: int,
        fields: Mapping[str, Any],
        actor: Optional[Actor],
        action: str,
        changes: List[ChangeDetail],
        written_at: datetime,
    ) -> int:
        with self._lock:
            current = self._records.get(record_id)
            if current is None:
                raise RecordNotFound(self.entity_type, record_id)
            if current.version != expected_version:
                raise VersionMismatch(self.entity_type, record_id, expected_version, current.version)
            values = copy.deepcopy(dict(current.values))
            for name, value in fields.items():
                values[name] = normalize_wire(self.registry.kind(name), value)
            new_version = expected_version + 1
            self._records[record_id] = StoredRecord(record_id, new_version, values, written_at, actor)
            self._log(record_id, new_version, action, actor, changes, written_at)
            return new_version
