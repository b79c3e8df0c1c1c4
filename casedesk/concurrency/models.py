"""Value objects shared by the concurrency core."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple


class ConflictType(str, Enum):
    """Verdict of the conflict classifier."""
    NONE = "none"
    MERGEABLE = "mergeable"
    HARD = "hard"


class ResolveMode(str, Enum):
    NONE = "none"
    MERGE = "merge"


class _Missing:
    """Marker for "no value on this side" (distinct from an explicit null)."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False

    def __copy__(self):
        return self

    def __deepcopy__(self, memo):
        return self


MISSING: Any = _Missing()


@dataclass(frozen=True)
class Actor:
    """The staff member submitting a write."""
    id: Optional[str] = None
    name: Optional[str] = None
    role: Optional[str] = None

    def to_dict(self) -> Dict[str, Optional[str]]:
        return {"id": self.id, "name": self.name, "role": self.role}


@dataclass(frozen=True)
class StoredRecord:
    """Point-in-time read of a versioned record, values in wire form."""
    record_id: str
    version: int
    values: Mapping[str, Any]
    updated_at: Optional[datetime] = None
    updated_by: Optional[Actor] = None

    def to_dict(self) -> Dict[str, Any]:
        data = copy.deepcopy(dict(self.values))
        data.update(
            {
                "id": self.record_id,
                "version": self.version,
                "updated_at": self.updated_at,
                "updated_by_id": self.updated_by.id if self.updated_by else None,
            }
        )
        return data


@dataclass(frozen=True)
class UpdateMeta:
    """Concurrency metadata an editor sends along with its payload."""
    base_version: int
    base_snapshot: Mapping[str, Any] = field(default_factory=dict)
    # None means "every payload field is mine"
    dirty_fields: Optional[Tuple[str, ...]] = None
    resolve_mode: ResolveMode = ResolveMode.NONE

    @property
    def is_merge(self) -> bool:
        return self.resolve_mode == ResolveMode.MERGE


@dataclass(frozen=True)
class FieldComparison:
    """Base, remote and client values of one field touched by either side."""
    field: str
    label: str
    base_value: Any
    remote_value: Any
    client_value: Any = MISSING
    remote_changed: bool = False
    client_changed: bool = False
    # remote and client ended up with the same value
    converged: bool = False

    @property
    def has_client_value(self) -> bool:
        return self.client_value is not MISSING

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "field": self.field,
            "label": self.label,
            "base_value": self.base_value,
            "remote_value": self.remote_value,
        }
        if self.has_client_value:
            data["client_value"] = self.client_value
        return data


@dataclass(frozen=True)
class ChangeDetail:
    """One field of a committed write, as recorded in the change log."""
    field: str
    label: str
    previous_value: Any
    current_value: Any

    def to_dict(self) -> Dict[str, Any]:
        return {
            "field": self.field,
            "label": self.label,
            "previous_value": self.previous_value,
            "current_value": self.current_value,
        }


@dataclass(frozen=True)
class ConflictVerdict:
    type: ConflictType
    remote_only: Tuple[FieldComparison, ...] = ()
    client_only: Tuple[FieldComparison, ...] = ()
    both: Tuple[FieldComparison, ...] = ()
    converged: Tuple[FieldComparison, ...] = ()

    @property
    def conflicting_fields(self) -> List[str]:
        return [comparison.field for comparison in self.both]


@dataclass(frozen=True)
class ConflictDetails:
    """Structured description of a rejected write."""
    type: ConflictType
    message: str
    entity_type: str
    record_id: str
    base_version: int
    latest_version: int
    remote_updated_at: Optional[datetime]
    remote_updated_by: Optional[Actor]
    comparisons: Tuple[FieldComparison, ...]
    remote_changes: Tuple[FieldComparison, ...]
    client_changes: Tuple[FieldComparison, ...]
    conflicting_fields: Tuple[str, ...]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type.value,
            "message": self.message,
            "entity_type": self.entity_type,
            "record_id": self.record_id,
            "base_version": self.base_version,
            "latest_version": self.latest_version,
            "remote_updated_at": self.remote_updated_at.isoformat() if self.remote_updated_at else None,
            "remote_updated_by": self.remote_updated_by.to_dict() if self.remote_updated_by else None,
            "comparisons": [c.to_dict() for c in self.comparisons],
            "remote_changes": [c.to_dict() for c in self.remote_changes],
            "client_changes": [c.to_dict() for c in self.client_changes],
            "conflicting_fields": list(self.conflicting_fields),
        }
