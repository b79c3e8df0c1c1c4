from __future__ import annotations

from datetime import datetime, timezone

import pytest

from casedesk.concurrency.changeset import extract
from casedesk.concurrency.classifier import build_conflict_details, classify
from casedesk.concurrency.models import Actor, ConflictType, StoredRecord
from casedesk.concurrency.registry import CASE_FIELDS


BASE = {"status": "open", "remark": "first call", "city": "Hangzhou"}


def _classify(current_values, client, dirty, base_version=3, current_version=4):
    comparisons = extract(BASE, current_values, client, dirty, CASE_FIELDS)
    return comparisons, classify(base_version, current_version, comparisons, dirty)


def test_same_version_is_never_a_conflict():
    # Even with a "remote" difference, an unchanged version means no write happened
    _, verdict = _classify(dict(BASE, remark="x"), {"remark": "y"}, ["remark"], 4, 4)
    assert verdict.type == ConflictType.NONE
    assert verdict.conflicting_fields == []


def test_disjoint_fields_are_mergeable():
    _, verdict = _classify(dict(BASE, remark="second call"), {"status": "closed"}, ["status"])

    assert verdict.type == ConflictType.MERGEABLE
    assert [c.field for c in verdict.remote_only] == ["remark"]
    assert [c.field for c in verdict.client_only] == ["status"]
    assert verdict.both == ()


def test_overlap_is_hard_and_lists_exactly_the_overlap():
    current = dict(BASE, remark="by bob", city="Ningbo")
    client = {"remark": "by alice", "status": "closed"}
    _, verdict = _classify(current, client, ["remark", "status"])

    assert verdict.type == ConflictType.HARD
    assert verdict.conflicting_fields == ["remark"]
    assert [c.field for c in verdict.remote_only] == ["city"]
    assert [c.field for c in verdict.client_only] == ["status"]


def test_converged_fields_do_not_make_a_conflict_hard():
    current = dict(BASE, remark="settled", city="Ningbo")
    _, verdict = _classify(current, {"remark": "settled"}, ["remark"])

    assert verdict.type == ConflictType.MERGEABLE
    assert [c.field for c in verdict.converged] == ["remark"]
    assert verdict.conflicting_fields == []


def test_classification_is_idempotent():
    current = dict(BASE, remark="by bob")
    comparisons, first = _classify(current, {"remark": "by alice"}, ["remark"])
    second = classify(3, 4, comparisons, ["remark"])
    assert first == second


def test_partitions_are_disjoint():
    current = dict(BASE, remark="by bob", city="Ningbo")
    client = {"remark": "by alice", "status": "closed"}
    _, verdict = _classify(current, client, ["remark", "status"])

    groups = [verdict.remote_only, verdict.client_only, verdict.both, verdict.converged]
    names = [c.field for group in groups for c in group]
    assert len(names) == len(set(names))


def _current(values, updated_by=None):
    return StoredRecord(
        record_id="case-1",
        version=4,
        values=values,
        updated_at=datetime(2024, 3, 1, 8, tzinfo=timezone.utc),
        updated_by=updated_by,
    )


def test_conflict_details_for_hard_verdict():
    current_values = dict(BASE, remark="by bob", city="Ningbo")
    client = {"remark": "by alice", "status": "closed"}
    comparisons, verdict = _classify(current_values, client, ["remark", "status"])

    details = build_conflict_details(
        verdict, comparisons, _current(current_values, Actor("bob", "Bob")), 3, "case"
    )

    assert details.type == ConflictType.HARD
    assert details.base_version == 3
    assert details.latest_version == 4
    assert "Bob" in details.message
    assert details.conflicting_fields == ("remark",)
    assert [c.field for c in details.remote_changes] == ["city", "remark"]
    assert [c.field for c in details.client_changes] == ["status", "remark"]

    data = details.to_dict()
    assert data["type"] == "hard"
    assert data["remote_updated_at"] == "2024-03-01T08:00:00+00:00"
    assert data["remote_updated_by"] == {"id": "bob", "name": "Bob", "role": None}


def test_conflict_details_without_known_author():
    current_values = dict(BASE, remark="second call")
    comparisons, verdict = _classify(current_values, {"status": "closed"}, ["status"])

    details = build_conflict_details(verdict, comparisons, _current(current_values), 3, "case")

    assert details.type == ConflictType.MERGEABLE
    assert "another user" in details.message
    assert details.conflicting_fields == ()


def test_no_details_for_none_verdict():
    comparisons, verdict = _classify(dict(BASE), {"status": "closed"}, ["status"], 4, 4)
    with pytest.raises(ValueError):
        build_conflict_details(verdict, comparisons, _current(dict(BASE)), 4, "case")
