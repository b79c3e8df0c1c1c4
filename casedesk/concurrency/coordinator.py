"""Resolution coordinator: one update attempt from submit to commit or conflict.

Flow per attempt::

    validate -> read current -> effective dirty set -> extract -> classify
        nothing changed        -> return current (no write)
        none                   -> commit at base_version
        mergeable/hard         -> raise conflict (no write)
        merge + none/mergeable -> commit at the version read just now
        merge + hard           -> raise conflict with the newer latest_version

The coordinator keeps no state between calls. A merge retry is a fresh,
caller-initiated attempt that re-reads the record, so a write landing
between the conflict report and the retry is detected again. A lost
compare-and-swap is reported as a fresh conflict rather than retried here.
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional

from casedesk.concurrency.changeset import effective_dirty_fields, extract
from casedesk.concurrency.classifier import build_conflict_details, classify
from casedesk.concurrency.errors import ConflictError, ValidationError, VersionMismatch
from casedesk.concurrency.ledger import RecordStore, VersionLedger
from casedesk.concurrency.models import (
    Actor,
    ConflictDetails,
    ConflictType,
    FieldComparison,
    StoredRecord,
    UpdateMeta,
)
from casedesk.logging_utils import get_logger

logger = get_logger(__name__)


class ResolutionCoordinator:
    """Runs update attempts for one entity type against a ``RecordStore``."""

    def __init__(self, store: RecordStore):
        self.store = store
        self.ledger = VersionLedger(store)
        self.registry = store.registry

    @property
    def entity_type(self) -> str:
        return self.registry.entity_type

    def _validate(self, payload: Mapping[str, Any], meta: UpdateMeta) -> List[str]:
        """Check payload and meta before any version is looked at.

        Returns the claimed dirty fields.
        """
        errors: List[Dict[str, str]] = list(self.registry.field_errors(payload))

        if meta.base_version < 0:
            errors.append({"field": "base_version", "message": "must be >= 0"})

        claimed = list(meta.dirty_fields) if meta.dirty_fields is not None else list(payload)
        for name in self.registry.ordered(claimed):
            if name not in self.registry:
                errors.append({"field": name, "message": "is not an editable field"})
            elif name not in payload:
                errors.append({"field": name, "message": "is marked dirty but missing from the payload"})
            elif name not in meta.base_snapshot:
                errors.append({"field": name, "message": "is marked dirty but missing from the base snapshot"})

        for name in self.registry.ordered(meta.base_snapshot):
            if name not in self.registry:
                errors.append({"field": name, "message": "in base snapshot is not an editable field"})

        if not errors:
            errors = self.store.missing_references({name: payload[name] for name in claimed})

        if errors:
            raise ValidationError(errors)
        return claimed

    def _conflict(
        self,
        current: StoredRecord,
        comparisons: List[FieldComparison],
        dirty: List[str],
        base_version: int,
    ) -> ConflictDetails:
        verdict = classify(base_version, current.version, comparisons, dirty)
        return build_conflict_details(verdict, comparisons, current, base_version, self.entity_type)

    def submit_update(
        self,
        record_id: str,
        payload: Mapping[str, Any],
        meta: UpdateMeta,
        actor: Optional[Actor] = None,
    ) -> StoredRecord:
        """Commit ``payload`` or raise a ``ConflictError`` describing why not.

        Raises:
            ValidationError: payload or meta is invalid (checked first).
            RecordNotFound: the record is gone.
            VersionMismatchMergeable / VersionMismatchHard: concurrent write.
        """
        claimed = self._validate(payload, meta)
        current = self.store.read_record(record_id)

        if meta.base_version > current.version:
            raise ValidationError(
                [{"field": "base_version", "message": f"is ahead of stored version {current.version}"}]
            )

        dirty = effective_dirty_fields(claimed, meta.base_snapshot, payload, self.registry)
        if not dirty:
            logger.info(f"[COORDINATOR] {self.entity_type} {record_id}: nothing to write")
            return current

        comparisons = extract(meta.base_snapshot, current.values, payload, dirty, self.registry)
        verdict = classify(meta.base_version, current.version, comparisons, dirty)

        if verdict.type == ConflictType.HARD or (
            verdict.type == ConflictType.MERGEABLE and not meta.is_merge
        ):
            details = build_conflict_details(
                verdict, comparisons, current, meta.base_version, self.entity_type
            )
            logger.warning(
                f"[CONFLICT] {self.entity_type} {record_id}: {details.type.value} "
                f"(base v{meta.base_version}, latest v{current.version}, "
                f"conflicting={list(details.conflicting_fields)})"
            )
            raise ConflictError.for_details(details)

        # Only the editor's own fields are written; everything else keeps
        # the value currently stored, including remote-only changes.
        new_values = {name: payload[name] for name in dirty}
        action = "update" if verdict.type == ConflictType.NONE else "merge"
        try:
            result = self.ledger.commit(
                record_id,
                current.version,
                new_values,
                actor=actor,
                previous=current,
                action=action,
            )
        except VersionMismatch as exc:
            logger.warning(f"[CONFLICT] {exc}; reporting the newer state")
            latest = self.store.read_record(record_id)
            comparisons = extract(meta.base_snapshot, latest.values, payload, dirty, self.registry)
            details = self._conflict(latest, comparisons, dirty, meta.base_version)
            raise ConflictError.for_details(details) from exc

        return result.record
