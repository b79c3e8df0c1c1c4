"""Conflict classification.

Given the version an editor started from, the version currently stored and
the field comparisons produced by the extractor, decide whether the write
can go through (``none``), can be replayed on top of the newer state
(``mergeable``) or needs a human decision (``hard``).
"""

from __future__ import annotations

from typing import Iterable, List

from casedesk.concurrency.models import (
    ConflictDetails,
    ConflictType,
    ConflictVerdict,
    FieldComparison,
    StoredRecord,
)

HARD_MESSAGE = (
    "This {entity} was updated by {who} while you were editing and the same "
    "fields were changed. Review the differences, then refresh or edit again."
)
MERGEABLE_MESSAGE = (
    "This {entity} was updated by {who} while you were editing. Your changes "
    "touch different fields and can be merged with the latest version."
)


def classify(
    base_version: int,
    current_version: int,
    comparisons: Iterable[FieldComparison],
    dirty_fields: Iterable[str],
) -> ConflictVerdict:
    """Partition comparisons and return the verdict for one update attempt."""
    if current_version == base_version:
        return ConflictVerdict(type=ConflictType.NONE)

    dirty = set(dirty_fields)
    remote_only: List[FieldComparison] = []
    client_only: List[FieldComparison] = []
    both: List[FieldComparison] = []
    converged: List[FieldComparison] = []

    for comparison in comparisons:
        mine = comparison.field in dirty
        if comparison.remote_changed and mine:
            if comparison.converged:
                converged.append(comparison)
            else:
                both.append(comparison)
        elif comparison.remote_changed:
            remote_only.append(comparison)
        elif mine:
            client_only.append(comparison)

    verdict_type = ConflictType.HARD if both else ConflictType.MERGEABLE
    return ConflictVerdict(
        type=verdict_type,
        remote_only=tuple(remote_only),
        client_only=tuple(client_only),
        both=tuple(both),
        converged=tuple(converged),
    )


def build_conflict_details(
    verdict: ConflictVerdict,
    comparisons: Iterable[FieldComparison],
    current: StoredRecord,
    base_version: int,
    entity_type: str,
) -> ConflictDetails:
    """Turn a non-``none`` verdict into the details returned to the editor."""
    if verdict.type == ConflictType.NONE:
        raise ValueError("No conflict to describe for a 'none' verdict")

    ordered = tuple(comparisons)
    remote_fields = {c.field for c in verdict.remote_only + verdict.both + verdict.converged}
    client_fields = {c.field for c in verdict.client_only + verdict.both + verdict.converged}

    who = "another user"
    if current.updated_by and current.updated_by.name:
        who = current.updated_by.name
    template = HARD_MESSAGE if verdict.type == ConflictType.HARD else MERGEABLE_MESSAGE

    return ConflictDetails(
        type=verdict.type,
        message=template.format(entity=entity_type, who=who),
        entity_type=entity_type,
        record_id=current.record_id,
        base_version=base_version,
        latest_version=current.version,
        remote_updated_at=current.updated_at,
        remote_updated_by=current.updated_by,
        comparisons=ordered,
        remote_changes=tuple(c for c in ordered if c.field in remote_fields),
        client_changes=tuple(c for c in ordered if c.field in client_fields),
        conflicting_fields=tuple(verdict.conflicting_fields),
    )
