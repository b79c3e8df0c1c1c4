"""Tests for the case endpoints, including the 409 conflict flow."""

from __future__ import annotations

from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from casedesk.api.dependencies import get_database_session
from casedesk.api.main import app
from casedesk.concurrency.registry import CASE_FIELDS


pytestmark = pytest.mark.api


def snapshot(case):
    """The editable part of a case response, as an edit form holds it."""
    return {name: case[name] for name in CASE_FIELDS.field_names}


def update_body(loaded, payload, dirty=None, resolve_mode="none"):
    return {
        "payload": payload,
        "meta": {
            "base_version": loaded["version"],
            "base_snapshot": snapshot(loaded),
            "dirty_fields": list(payload) if dirty is None else dirty,
            "resolve_mode": resolve_mode,
        },
    }


class TestCasesAPI:
    """Test cases for case endpoints."""

    @pytest.fixture
    def client(self, db_session):
        def override_get_database_session():
            yield db_session

        app.dependency_overrides[get_database_session] = override_get_database_session
        try:
            yield TestClient(app)
        finally:
            app.dependency_overrides.clear()

    @pytest.fixture
    def alice(self, client):
        response = client.post("/api/v1/users/", json={"name": "Alice", "role": "lawyer"})
        assert response.status_code == 201
        return {"X-User-Id": response.json()["id"]}

    @pytest.fixture
    def bob(self, client):
        response = client.post("/api/v1/users/", json={"name": "Bob", "role": "assistant"})
        return {"X-User-Id": response.json()["id"]}

    @pytest.fixture
    def case(self, client, alice):
        response = client.post(
            "/api/v1/cases/",
            json={
                "case_type": "work_injury",
                "case_level": "A",
                "city": "Hangzhou",
                "remark": "first call",
                "target_amount": "1000",
                "insurance_types": ["social"],
            },
            headers=alice,
        )
        assert response.status_code == 201
        return response.json()

    def test_create_case(self, case):
        assert case["version"] == 0
        assert case["status"] == "open"
        assert case["target_amount"] == "1000"
        assert case["insurance_types"] == ["social"]
        assert case["hearings"] == []

    def test_create_requires_acting_user(self, client):
        body = {"case_type": "work_injury", "case_level": "A"}
        assert client.post("/api/v1/cases/", json=body).status_code == 401
        assert (
            client.post("/api/v1/cases/", json=body, headers={"X-User-Id": "nope"}).status_code
            == 401
        )
        assert (
            client.post("/api/v1/cases/", json=body, headers={"X-User-Id": str(uuid4())}).status_code
            == 401
        )

    def test_create_rejects_unknown_choice(self, client, alice):
        response = client.post(
            "/api/v1/cases/",
            json={"case_type": "divorce", "case_level": "A"},
            headers=alice,
        )
        assert response.status_code == 422
        assert response.json()["detail"]["errors"][0]["field"] == "case_type"

    def test_get_and_list_cases(self, client, case):
        response = client.get(f"/api/v1/cases/{case['id']}")
        assert response.status_code == 200
        assert response.json()["version"] == 0

        response = client.get("/api/v1/cases/", params={"status": "open"})
        assert [c["id"] for c in response.json()] == [case["id"]]

        response = client.get("/api/v1/cases/", params={"status": "closed"})
        assert response.json() == []

    def test_get_missing_case(self, client):
        response = client.get(f"/api/v1/cases/{uuid4()}")
        assert response.status_code == 404
        assert response.json()["detail"] == "Case not found"

    def test_update_case(self, client, case, alice):
        response = client.put(
            f"/api/v1/cases/{case['id']}",
            json=update_body(case, {"status": "closed", "closed_reason": "settled"}),
            headers=alice,
        )

        assert response.status_code == 200
        data = response.json()
        assert data["version"] == 1
        assert data["status"] == "closed"
        assert data["remark"] == "first call"

    def test_mergeable_conflict_then_merge(self, client, case, alice, bob):
        response = client.put(
            f"/api/v1/cases/{case['id']}",
            json=update_body(case, {"remark": "called back"}),
            headers=bob,
        )
        assert response.status_code == 200

        response = client.put(
            f"/api/v1/cases/{case['id']}",
            json=update_body(case, {"status": "closed"}),
            headers=alice,
        )

        assert response.status_code == 409
        detail = response.json()["detail"]
        assert "Bob" in detail["message"]
        assert detail["conflict"]["type"] == "mergeable"
        assert detail["conflict"]["latest_version"] == 1
        assert detail["conflict"]["conflicting_fields"] == []
        assert detail["presentation"]["can_merge"] is True
        rows = {row["field"]: row for row in detail["presentation"]["rows"]}
        assert rows["remark"]["remote_display"] == "called back"
        assert rows["status"]["client_display"] == "closed"

        response = client.put(
            f"/api/v1/cases/{case['id']}",
            json=update_body(case, {"status": "closed"}, resolve_mode="merge"),
            headers=alice,
        )

        assert response.status_code == 200
        data = response.json()
        assert data["version"] == 2
        assert data["status"] == "closed"
        assert data["remark"] == "called back"

    def test_hard_conflict(self, client, case, alice, bob):
        client.put(
            f"/api/v1/cases/{case['id']}",
            json=update_body(case, {"remark": "bob's note", "target_amount": "2000"}),
            headers=bob,
        )

        response = client.put(
            f"/api/v1/cases/{case['id']}",
            json=update_body(case, {"remark": "alice's note"}, resolve_mode="merge"),
            headers=alice,
        )

        assert response.status_code == 409
        detail = response.json()["detail"]
        assert detail["conflict"]["type"] == "hard"
        assert detail["conflict"]["conflicting_fields"] == ["remark"]
        assert detail["presentation"]["can_merge"] is False
        conflicting = [row["field"] for row in detail["presentation"]["rows"] if row["is_conflicting"]]
        assert conflicting == ["remark"]

        current = client.get(f"/api/v1/cases/{case['id']}").json()
        assert current["version"] == 1
        assert current["remark"] == "bob's note"

    def test_equivalent_amount_is_not_a_change(self, client, case, alice):
        response = client.put(
            f"/api/v1/cases/{case['id']}",
            json=update_body(case, {"target_amount": "1000.00"}),
            headers=alice,
        )
        assert response.status_code == 200
        assert response.json()["version"] == 0

    def test_update_validation_errors(self, client, case, alice):
        response = client.put(
            f"/api/v1/cases/{case['id']}",
            json=update_body(case, {"status": "archived"}),
            headers=alice,
        )
        assert response.status_code == 422
        assert response.json()["detail"]["errors"][0]["field"] == "status"

        response = client.put(
            f"/api/v1/cases/{case['id']}",
            json=update_body(case, {"bogus": "x"}),
            headers=alice,
        )
        assert response.status_code == 422

        body = update_body(case, {"remark": "x"})
        body["meta"]["base_version"] = 7
        response = client.put(f"/api/v1/cases/{case['id']}", json=body, headers=alice)
        assert response.status_code == 422
        assert response.json()["detail"]["errors"][0]["field"] == "base_version"

    def test_create_rejects_unknown_assignee(self, client, alice):
        response = client.post(
            "/api/v1/cases/",
            json={"case_type": "work_injury", "case_level": "A", "assigned_lawyer_id": str(uuid4())},
            headers=alice,
        )
        assert response.status_code == 422
        assert response.json()["detail"]["errors"] == [
            {"field": "assigned_lawyer_id", "message": "refers to an unknown user"}
        ]

        response = client.post(
            "/api/v1/cases/",
            json={
                "case_type": "work_injury",
                "case_level": "A",
                "assigned_lawyer_id": alice["X-User-Id"],
            },
            headers=alice,
        )
        assert response.status_code == 201
        assert response.json()["assigned_lawyer_id"] == alice["X-User-Id"]

    def test_update_rejects_unknown_assignee(self, client, case, alice, bob):
        response = client.put(
            f"/api/v1/cases/{case['id']}",
            json=update_body(case, {"assigned_assistant_id": str(uuid4())}),
            headers=alice,
        )
        assert response.status_code == 422
        assert response.json()["detail"]["errors"][0] == {
            "field": "assigned_assistant_id",
            "message": "refers to an unknown user",
        }

        # Checked before the version, so a stale edit is still a 422
        client.put(
            f"/api/v1/cases/{case['id']}",
            json=update_body(case, {"remark": "called back"}),
            headers=bob,
        )
        response = client.put(
            f"/api/v1/cases/{case['id']}",
            json=update_body(case, {"assigned_sale_id": str(uuid4())}),
            headers=alice,
        )
        assert response.status_code == 422

        response = client.put(
            f"/api/v1/cases/{case['id']}",
            json=update_body(
                client.get(f"/api/v1/cases/{case['id']}").json(),
                {"assigned_assistant_id": bob["X-User-Id"]},
            ),
            headers=alice,
        )
        assert response.status_code == 200
        assert response.json()["assigned_assistant_id"] == bob["X-User-Id"]

    def test_overlong_text_is_rejected(self, client, case, alice):
        response = client.post(
            "/api/v1/cases/",
            json={"case_type": "work_injury", "case_level": "A", "department": "x" * 101},
            headers=alice,
        )
        assert response.status_code == 422
        assert response.json()["detail"]["errors"] == [
            {"field": "department", "message": "must be at most 100 characters"}
        ]

        response = client.put(
            f"/api/v1/cases/{case['id']}",
            json=update_body(case, {"city": "x" * 101}),
            headers=alice,
        )
        assert response.status_code == 422
        assert response.json()["detail"]["errors"][0]["field"] == "city"

    def test_update_missing_case(self, client, case, alice):
        response = client.put(
            f"/api/v1/cases/{uuid4()}",
            json=update_body(case, {"remark": "x"}),
            headers=alice,
        )
        assert response.status_code == 404
        assert response.json()["detail"] == "Case not found"

    def test_change_logs(self, client, case, alice, bob):
        client.put(
            f"/api/v1/cases/{case['id']}",
            json=update_body(case, {"remark": "called back"}),
            headers=bob,
        )
        client.put(
            f"/api/v1/cases/{case['id']}",
            json=update_body(case, {"status": "closed"}, resolve_mode="merge"),
            headers=alice,
        )

        response = client.get(f"/api/v1/cases/{case['id']}/change-logs")

        assert response.status_code == 200
        logs = response.json()
        assert [(log["version"], log["action"]) for log in logs] == [
            (2, "merge"),
            (1, "update"),
            (0, "create"),
        ]
        assert logs[0]["actor_name"] == "Alice"
        assert logs[0]["changes"] == [
            {
                "field": "status",
                "label": "Case status",
                "previous_value": "open",
                "current_value": "closed",
            }
        ]

    def test_delete_case(self, client, case, alice):
        response = client.delete(f"/api/v1/cases/{case['id']}", headers=alice)
        assert response.status_code == 204
        assert client.get(f"/api/v1/cases/{case['id']}").status_code == 404
        assert client.delete(f"/api/v1/cases/{case['id']}", headers=alice).status_code == 404
