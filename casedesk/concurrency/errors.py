"""Error taxonomy of the concurrency core.

Conflicts are an expected outcome of an update, so they carry the full
``ConflictDetails`` and are meant to be caught and returned to the editor.
Only ``RecordNotFound`` and storage failures are fatal for an edit session.
"""

from __future__ import annotations

from typing import Dict, List

from casedesk.concurrency.models import ConflictDetails, ConflictType


class RecordNotFound(Exception):
    """Raised when the record under edit no longer exists."""

    def __init__(self, entity_type: str, record_id: str):
        self.entity_type = entity_type
        self.record_id = record_id
        super().__init__(f"{entity_type} {record_id} not found")


class ValidationError(Exception):
    """Raised when a payload or its metadata fails field-level checks."""

    def __init__(self, errors: List[Dict[str, str]]):
        self.errors = errors
        summary = "; ".join(f"{e['field']} {e['message']}" for e in errors)
        super().__init__(f"Invalid update: {summary}")


class VersionMismatch(Exception):
    """Raised by the version ledger when a conditional write is rejected."""

    def __init__(self, entity_type: str, record_id: str, expected: int, actual: int | None = None):
        self.entity_type = entity_type
        self.record_id = record_id
        self.expected = expected
        self.actual = actual
        found = "unknown" if actual is None else str(actual)
        super().__init__(
            f"Version conflict on {entity_type} {record_id}: expected {expected}, found {found}"
        )


class ConflictError(Exception):
    """A concurrent write was detected; ``details`` describes it."""

    retryable_by_merge = False

    def __init__(self, details: ConflictDetails):
        self.details = details
        super().__init__(details.message)

    @classmethod
    def for_details(cls, details: ConflictDetails) -> "ConflictError":
        if details.type == ConflictType.HARD:
            return VersionMismatchHard(details)
        return VersionMismatchMergeable(details)


class VersionMismatchHard(ConflictError):
    """Overlapping edits; the editor has to decide."""


class VersionMismatchMergeable(ConflictError):
    """Disjoint edits; resubmitting with ``resolve_mode=merge`` is safe."""

    retryable_by_merge = True
