"""
Tests for the REST API.

Run with: pytest eventaudit/api/test_routes.py
"""

import pytest
from fastapi.testclient import TestClient

from eventaudit.api import create_app
from eventaudit.exceptions import ConflictError
from eventaudit.repositories import EventStore


@pytest.fixture
def client(database):
    app = create_app(database)
    with TestClient(app) as test_client:
        yield test_client


def _create(client, title="A", date="2026-10-19T09:30:00", user=None):
    headers = {"X-Audit-User": user} if user else {}
    response = client.post("/api/events", json={"title": title, "date": date}, headers=headers)
    assert response.status_code == 201
    return response.json()


# =============================================================================
# Event CRUD
# =============================================================================


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok", "database": "open"}


def test_create_and_get_event(client):
    created = _create(client)

    assert created == {"id": 1, "title": "A", "date": "2026-10-19T09:30:00"}
    assert client.get("/api/events/1").json() == created


def test_create_defaults_date(client):
    response = client.post("/api/events", json={"title": "Now"})

    assert response.status_code == 201
    assert response.json()["date"]


def test_create_rejects_empty_title(client):
    response = client.post("/api/events", json={"title": ""})

    assert response.status_code == 422


def test_create_with_offset_is_stored_as_utc(client):
    created = _create(client, date="2026-10-19T09:30:00+02:00")

    assert created["date"] == "2026-10-19T07:30:00"
    response = client.patch(f"/api/events/{created['id']}", json={"date": "2026-10-19T09:30:00+02:00"})
    assert response.status_code == 200

    revisions = client.get(f"/api/events/{created['id']}/revisions").json()
    assert [r["revision_type"] for r in revisions] == ["ADD"]


@pytest.mark.parametrize("error, status_code", [
    (ConflictError("Event 1 already exists", entity_id=1), 409),
    (ValueError("Event title must be a string"), 400),
])
def test_create_maps_store_errors(client, monkeypatch, error, status_code):
    def failing_create(self, event):
        raise error

    monkeypatch.setattr(EventStore, "create", failing_create)

    response = client.post("/api/events", json={"title": "A"})

    assert response.status_code == status_code
    assert response.json()["detail"] == str(error)


def test_list_events(client):
    _create(client, "first")
    _create(client, "second")

    response = client.get("/api/events")

    assert [e["title"] for e in response.json()] == ["first", "second"]


def test_get_missing_event(client):
    response = client.get("/api/events/42")

    assert response.status_code == 404
    assert response.json()["detail"] == "Event 42 not found"


def test_update_event(client):
    _create(client)

    response = client.patch("/api/events/1", json={"title": "A-edited"})

    assert response.status_code == 200
    assert response.json()["title"] == "A-edited"
    assert response.json()["date"] == "2026-10-19T09:30:00"


def test_update_missing_event(client):
    response = client.patch("/api/events/9", json={"title": "x"})

    assert response.status_code == 404


def test_delete_event_keeps_history(client):
    _create(client)

    response = client.delete("/api/events/1")
    assert response.status_code == 204

    assert client.get("/api/events/1").status_code == 404
    assert client.delete("/api/events/1").status_code == 404

    revisions = client.get("/api/events/1/revisions").json()
    assert [r["revision_type"] for r in revisions] == ["ADD", "DEL"]


# =============================================================================
# Revision History
# =============================================================================


def test_revisions_and_as_of(client):
    _create(client, user="alice")
    client.patch("/api/events/1", json={"title": "A-edited"}, headers={"X-Audit-User": "bob"})

    revisions = client.get("/api/events/1/revisions").json()
    assert [(r["revision_number"], r["revision_type"], r["author"]) for r in revisions] == [
        (1, "ADD", "alice"),
        (2, "MOD", "bob"),
    ]

    assert client.get("/api/events/1/revisions/1").json()["title"] == "A"
    assert client.get("/api/events/1/revisions/2").json()["title"] == "A-edited"
    assert client.get("/api/events/1").json()["title"] == "A-edited"


def test_revisions_of_unknown_event(client):
    assert client.get("/api/events/5/revisions").status_code == 404


def test_as_of_invalid_revision(client):
    _create(client)

    assert client.get("/api/events/1/revisions/0").status_code == 400
    assert client.get("/api/events/2/revisions/1").status_code == 404


def test_diff(client):
    _create(client)
    client.patch("/api/events/1", json={"title": "A-edited"})

    response = client.get("/api/events/1/diff/1/2")

    assert response.status_code == 200
    assert response.json()["changed"] == {"title": {"from": "A", "to": "A-edited"}}


def test_revert(client):
    _create(client)
    client.patch("/api/events/1", json={"title": "A-edited"})

    response = client.post("/api/events/1/revert/1")

    assert response.status_code == 200
    assert response.json()["title"] == "A"
    revisions = client.get("/api/events/1/revisions").json()
    assert [r["revision_type"] for r in revisions] == ["ADD", "MOD", "MOD"]


def test_revision_info(client):
    _create(client)

    response = client.get("/api/revisions/1")

    assert response.status_code == 200
    assert response.json()["revision_number"] == 1
    assert client.get("/api/revisions/99").status_code == 404
