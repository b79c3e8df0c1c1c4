"""Tests for client and user endpoints."""

from __future__ import annotations

from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from casedesk.api.dependencies import get_database_session
from casedesk.api.main import app
from casedesk.concurrency.registry import CLIENT_FIELDS


pytestmark = pytest.mark.api


@pytest.fixture
def client(db_session):
    def override_get_database_session():
        yield db_session

    app.dependency_overrides[get_database_session] = override_get_database_session
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def headers(client):
    response = client.post("/api/v1/users/", json={"name": "Alice", "email": "alice@example.com"})
    return {"X-User-Id": response.json()["id"]}


def test_create_and_get_user(client):
    response = client.post("/api/v1/users/", json={"name": "Bob", "role": "sale"})
    assert response.status_code == 201
    user = response.json()
    assert user["role"] == "sale"

    response = client.get(f"/api/v1/users/{user['id']}")
    assert response.status_code == 200
    assert response.json()["name"] == "Bob"

    assert client.get(f"/api/v1/users/{uuid4()}").status_code == 404


def test_duplicate_user_email(client, headers):
    response = client.post("/api/v1/users/", json={"name": "Alice Again", "email": "alice@example.com"})
    assert response.status_code == 409
    assert response.json()["detail"] == "A user with this email already exists"

    # The session is still usable after the rollback
    response = client.post("/api/v1/users/", json={"name": "Carol", "email": "carol@example.com"})
    assert response.status_code == 201
    assert client.get(f"/api/v1/users/{headers['X-User-Id']}").status_code == 200


def test_client_update_conflict(client, headers):
    response = client.post(
        "/api/v1/clients/", json={"name": "Zhang San", "phone": "123"}, headers=headers
    )
    assert response.status_code == 201
    loaded = response.json()
    assert loaded["version"] == 0
    assert loaded["entity_type"] == "personal"

    def body(payload):
        return {
            "payload": payload,
            "meta": {
                "base_version": loaded["version"],
                "base_snapshot": {name: loaded[name] for name in CLIENT_FIELDS.field_names},
                "dirty_fields": list(payload),
            },
        }

    response = client.put(f"/api/v1/clients/{loaded['id']}", json=body({"phone": "456"}), headers=headers)
    assert response.status_code == 200
    assert response.json()["version"] == 1

    response = client.put(f"/api/v1/clients/{loaded['id']}", json=body({"phone": "789"}), headers=headers)
    assert response.status_code == 409
    detail = response.json()["detail"]
    assert detail["conflict"]["type"] == "hard"
    assert detail["conflict"]["entity_type"] == "client"
    assert detail["presentation"]["rows"][0]["field_label"] == "Phone"

    response = client.get(f"/api/v1/clients/{loaded['id']}/change-logs")
    assert [log["version"] for log in response.json()] == [1, 0]


def test_missing_client(client, headers):
    assert client.get(f"/api/v1/clients/{uuid4()}").status_code == 404
    response = client.put(
        f"/api/v1/clients/{uuid4()}",
        json={"payload": {"phone": "1"}, "meta": {"base_version": 0, "base_snapshot": {"phone": None}}},
        headers=headers,
    )
    assert response.status_code == 404
    assert response.json()["detail"] == "Client not found"
