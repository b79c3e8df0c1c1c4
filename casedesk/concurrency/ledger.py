"""Version ledger: the only path through which versioned records are written.

Every committed write bumps ``version`` by exactly one. The write itself is
a compare-and-swap on the version, delegated to a ``RecordStore``; there is
no lock held between reading a record and writing it, so concurrent callers
never wait on each other and the loser of a race gets ``VersionMismatch``.
"""

from __future__ import annotations

import abc
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional

from casedesk.concurrency.errors import VersionMismatch
from casedesk.concurrency.models import Actor, ChangeDetail, StoredRecord
from casedesk.concurrency.registry import FieldRegistry
from casedesk.concurrency.values import normalize_wire, values_equal
from casedesk.logging_utils import get_logger

logger = get_logger(__name__)


class RecordStore(abc.ABC):
    """Storage collaborator for one versioned entity type."""

    registry: FieldRegistry

    @property
    def entity_type(self) -> str:
        return self.registry.entity_type

    @abc.abstractmethod
    def read_record(self, record_id: str) -> StoredRecord:
        """Return the current state of a record or raise ``RecordNotFound``."""

    @abc.abstractmethod
    def create_record(self, values: Mapping[str, Any], actor: Optional[Actor] = None) -> StoredRecord:
        """Insert a record at version 0, recording a ``create`` change log."""

    @abc.abstractmethod
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
        """Atomically write ``fields`` if the stored version is ``expected_version``.

        Returns the new version. Raises ``VersionMismatch`` without writing
        anything otherwise; the change log entry is written in the same
        unit of work as the fields.
        """

    def missing_references(self, values: Mapping[str, Any]) -> List[Dict[str, str]]:
        """Errors for id fields in ``values`` that point at records which do not exist.

        Stores without related tables have nothing to check.
        """
        return []


@dataclass(frozen=True)
class CommitResult:
    new_version: int
    record: StoredRecord

    @property
    def committed_values(self) -> Mapping[str, Any]:
        return self.record.values


def build_changes(
    previous: Mapping[str, Any], new_values: Mapping[str, Any], registry: FieldRegistry
) -> List[ChangeDetail]:
    """Fields whose value actually changes, in registry order."""
    changes: List[ChangeDetail] = []
    for name in registry.ordered(new_values):
        kind = registry.kind(name)
        if values_equal(kind, previous.get(name), new_values[name]):
            continue
        changes.append(
            ChangeDetail(
                field=name,
                label=registry.label(name),
                previous_value=previous.get(name),
                current_value=normalize_wire(kind, new_values[name]),
            )
        )
    return changes


class VersionLedger:
    """Per-record version counter backed by a ``RecordStore``."""

    def __init__(self, store: RecordStore):
        self.store = store

    @property
    def registry(self) -> FieldRegistry:
        return self.store.registry

    def current_version(self, record_id: str) -> int:
        return self.store.read_record(record_id).version

    def commit(
        self,
        record_id: str,
        expected_version: int,
        new_values: Mapping[str, Any],
        actor: Optional[Actor] = None,
        previous: Optional[StoredRecord] = None,
        action: str = "update",
    ) -> CommitResult:
        """Write ``new_values`` on top of version ``expected_version``.

        ``previous`` is the read the caller based its decision on; when it
        is at a different version the write is rejected up front.
        """
        if previous is None:
            previous = self.store.read_record(record_id)
        if previous.version != expected_version:
            raise VersionMismatch(self.store.entity_type, record_id, expected_version, previous.version)

        changes = build_changes(previous.values, new_values, self.registry)
        written_at = datetime.now(timezone.utc)
        new_version = self.store.conditional_write(
            record_id, expected_version, new_values, actor, action, changes, written_at
        )

        committed: Dict[str, Any] = dict(previous.values)
        for name, value in new_values.items():
            committed[name] = normalize_wire(self.registry.kind(name), value)

        logger.info(
            f"[LEDGER] {self.store.entity_type} {record_id} v{expected_version} -> v{new_version} "
            f"({action}, {len(changes)} field(s) changed)"
        )
        return CommitResult(
            new_version=new_version,
            record=StoredRecord(
                record_id=previous.record_id,
                version=new_version,
                values=committed,
                updated_at=written_at,
                updated_by=actor,
            ),
        )
