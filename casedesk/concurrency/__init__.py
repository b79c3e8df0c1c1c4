"""
Optimistic-concurrency core for shared records.

Editors submit updates together with the version and field values they
started from. The core detects writes that happened in between, classifies
them as mergeable or hard conflicts, and commits through a compare-and-swap
on the record version so no update is ever silently lost.
"""

from casedesk.concurrency.coordinator import ResolutionCoordinator
from casedesk.concurrency.errors import (
    ConflictError,
    RecordNotFound,
    ValidationError,
    VersionMismatch,
    VersionMismatchHard,
    VersionMismatchMergeable,
)
from casedesk.concurrency.ledger import RecordStore, VersionLedger
from casedesk.concurrency.models import (
    Actor,
    ConflictDetails,
    ConflictType,
    ResolveMode,
    StoredRecord,
    UpdateMeta,
)
from casedesk.concurrency.presentation import present
from casedesk.concurrency.registry import CASE_FIELDS, CLIENT_FIELDS, FieldRegistry, FieldSpec

__all__ = [
    "Actor",
    "CASE_FIELDS",
    "CLIENT_FIELDS",
    "ConflictDetails",
    "ConflictError",
    "ConflictType",
    "FieldRegistry",
    "FieldSpec",
    "RecordNotFound",
    "RecordStore",
    "ResolutionCoordinator",
    "ResolveMode",
    "StoredRecord",
    "UpdateMeta",
    "ValidationError",
    "VersionLedger",
    "VersionMismatch",
    "VersionMismatchHard",
    "VersionMismatchMergeable",
    "present",
]
