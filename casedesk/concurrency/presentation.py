"""Diff presentation model for conflict dialogs.

A pure mapping from ``ConflictDetails`` to labelled rows a form can render
as a base / latest / mine table. Merge decisions must use the classifier's
``conflicting_fields``, never these display strings.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Optional, Tuple

from casedesk.concurrency.models import ConflictDetails, ConflictType
from casedesk.concurrency.registry import FieldRegistry
from casedesk.concurrency.values import FieldKind, display

SUMMARY_LABELS = {
    ConflictType.HARD: "Refresh to the latest version before saving",
    ConflictType.MERGEABLE: "Changes can be merged",
}


@dataclass(frozen=True)
class DiffRow:
    field: str
    field_label: str
    base_display: str
    remote_display: str
    client_display: str
    is_conflicting: bool


@dataclass(frozen=True)
class DiffPresentation:
    conflict_type: str
    summary_label: str
    message: str
    can_merge: bool
    latest_version: int
    remote_updated_at: Optional[str]
    remote_updated_by: Optional[str]
    rows: Tuple[DiffRow, ...]

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["rows"] = [asdict(row) for row in self.rows]
        return data


def present(
    details: ConflictDetails,
    registry: Optional[FieldRegistry] = None,
    empty_display: str = "—",
) -> DiffPresentation:
    """Build the rows shown to an editor for one conflict.

    Rows follow the order of ``details.comparisons``. A side that did not
    touch a field shows the base value, since that is what it still holds.
    """
    remote_fields = {c.field for c in details.remote_changes}
    client_fields = {c.field for c in details.client_changes}
    conflicting = set(details.conflicting_fields)

    rows: List[DiffRow] = []
    for comparison in details.comparisons:
        if comparison.field not in remote_fields and comparison.field not in client_fields:
            continue
        kind = registry.kind(comparison.field) if registry else FieldKind.JSON

        def render(value: Any) -> str:
            return display(kind, value, empty_display)

        base = render(comparison.base_value)
        remote = render(comparison.remote_value) if comparison.field in remote_fields else base
        client = (
            render(comparison.client_value)
            if comparison.field in client_fields and comparison.has_client_value
            else base
        )
        rows.append(
            DiffRow(
                field=comparison.field,
                field_label=comparison.label,
                base_display=base,
                remote_display=remote,
                client_display=client,
                is_conflicting=comparison.field in conflicting,
            )
        )

    updated_by = details.remote_updated_by
    return DiffPresentation(
        conflict_type=details.type.value,
        summary_label=SUMMARY_LABELS.get(details.type, ""),
        message=details.message,
        can_merge=details.type == ConflictType.MERGEABLE,
        latest_version=details.latest_version,
        remote_updated_at=details.remote_updated_at.isoformat() if details.remote_updated_at else None,
        remote_updated_by=(updated_by.name or updated_by.id) if updated_by else None,
        rows=tuple(rows),
    )
