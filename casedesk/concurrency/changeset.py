"""Change-set extraction: which fields did either side touch, and how."""

from __future__ import annotations

from typing import Any, Iterable, List, Mapping

from casedesk.concurrency.models import MISSING, FieldComparison
from casedesk.concurrency.registry import FieldRegistry
from casedesk.concurrency.values import values_equal


def extract(
    base_snapshot: Mapping[str, Any],
    current_stored: Mapping[str, Any],
    client_intended: Mapping[str, Any],
    dirty_fields: Iterable[str],
    registry: FieldRegistry,
) -> List[FieldComparison]:
    """Compare base, remote and client values for every touched field.

    A field is touched when the editor marked it dirty, or when its stored
    value no longer equals the value in the base snapshot. Fields the base
    snapshot does not contain cannot be checked for remote changes and are
    only reported when dirty.
    """
    dirty = set(dirty_fields)
    remote_changed = {
        name
        for name in base_snapshot
        if not values_equal(
            registry.kind(name), base_snapshot[name], current_stored.get(name)
        )
    }

    comparisons: List[FieldComparison] = []
    for name in registry.ordered(dirty | remote_changed):
        kind = registry.kind(name)
        base_value = base_snapshot.get(name)
        remote_value = current_stored.get(name)
        client_value = client_intended.get(name) if name in dirty else MISSING
        converged = (
            name in dirty
            and name in remote_changed
            and values_equal(kind, remote_value, client_value)
        )
        comparisons.append(
            FieldComparison(
                field=name,
                label=registry.label(name),
                base_value=base_value,
                remote_value=remote_value,
                client_value=client_value,
                remote_changed=name in remote_changed,
                client_changed=name in dirty and not values_equal(kind, base_value, client_value),
                converged=converged,
            )
        )
    return comparisons


def effective_dirty_fields(
    claimed: Iterable[str],
    base_snapshot: Mapping[str, Any],
    client_intended: Mapping[str, Any],
    registry: FieldRegistry,
) -> List[str]:
    """Claimed dirty fields whose intended value really differs from the base.

    The claim comes from the editor and is not trusted on its own: a field
    resubmitted with its base value is not a change, and writing it would
    revert whatever another actor stored meanwhile.
    """
    return [
        name
        for name in registry.ordered(claimed)
        if not values_equal(
            registry.kind(name), base_snapshot.get(name), client_intended.get(name)
        )
    ]
