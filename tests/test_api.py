"""
API tests through FastAPI's TestClient.
"""

import pytest
from fastapi.testclient import TestClient

from facilityflow.api import create_app
from facilityflow.config import Settings


@pytest.fixture
def client(service):
    settings = Settings(log_level="WARNING")
    return TestClient(create_app(settings=settings, service=service))


def as_actor(actor):
    return {"X-Actor-Id": actor.id}


@pytest.fixture
def issue_payload():
    return {
        "title": "Broken AC",
        "description": "Air conditioning unit blowing warm air",
        "area": "Reception",
        "department": "Facilities",
        "priority": "normal",
    }


@pytest.fixture
def issue_id(client, issue_payload, ops_manager):
    response = client.post("/issues", json=issue_payload, headers=as_actor(ops_manager))
    assert response.status_code == 201
    return response.json()["id"]


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


class TestProfiles:

    def test_upsert_and_read_own_profile(self, client):
        headers = {"X-Actor-Id": "new-user"}
        body = {"name": " Anna Kim ", "email": "Anna@Example.com", "role": "Technicians", "department": "Operations"}

        response = client.put("/profiles/me", json=body, headers=headers)

        assert response.status_code == 200
        assert response.json()["name"] == "Anna Kim"
        assert response.json()["email"] == "anna@example.com"
        assert client.get("/profiles/me", headers=headers).json()["role"] == "Technicians"

    def test_unknown_role_rejected(self, client):
        body = {"name": "X", "email": "x@example.com", "role": "Astronauts"}
        response = client.put("/profiles/me", json=body, headers={"X-Actor-Id": "x"})

        assert response.status_code == 422
        error = response.json()["error"]
        assert error["code"] == "VALIDATION_ERROR"
        assert error["details"]["issues"][0]["loc"] == ["body", "role"]

    def test_missing_profile(self, client):
        response = client.get("/profiles/me", headers={"X-Actor-Id": "nobody"})
        assert response.status_code == 404
        assert response.json()["error"]["code"] == "NOT_FOUND"

    def test_technicians_same_department_first(self, client):
        response = client.get("/technicians", params={"department": "IT"})
        assert [t["id"] for t in response.json()] == ["tech-7", "tech-42"]


class TestIssues:

    def test_report(self, client, issue_payload, kitchen_staff):
        response = client.post("/issues", json=issue_payload, headers=as_actor(kitchen_staff))

        body = response.json()
        assert response.status_code == 201
        assert body["status"] == "open"
        assert body["started_at"] is None
        assert body["created_by"] == kitchen_staff.id

    def test_report_missing_fields(self, client, kitchen_staff):
        response = client.post("/issues", json={"title": "Only a title"}, headers=as_actor(kitchen_staff))

        assert response.status_code == 422
        error = response.json()["error"]
        assert error["code"] == "VALIDATION_ERROR"
        assert error["details"]["fields"] == ["description", "area", "department"]

    def test_actor_header_required(self, client, issue_payload):
        response = client.post("/issues", json=issue_payload)

        assert response.status_code == 422
        error = response.json()["error"]
        assert error["code"] == "VALIDATION_ERROR"
        assert error["details"]["issues"][0]["loc"] == ["header", "x-actor-id"]

    def test_unknown_department_uses_error_envelope(self, client, issue_payload, kitchen_staff):
        issue_payload["department"] = "Facility"

        response = client.post("/issues", json=issue_payload, headers=as_actor(kitchen_staff))

        assert response.status_code == 422
        assert "detail" not in response.json()
        assert response.json()["error"]["details"]["issues"][0]["loc"] == ["body", "department"]

    def test_non_numeric_issue_id(self, client):
        response = client.get("/issues/abc")

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    def test_assign_start_close(self, client, issue_id, ops_manager, technician):
        response = client.post(
            f"/issues/{issue_id}/assign",
            json={"assigned_tech_id": technician.id},
            headers=as_actor(ops_manager),
        )
        assert response.json()["assigned_tech_id"] == technician.id

        response = client.post(f"/issues/{issue_id}/start", headers=as_actor(technician))
        assert response.status_code == 200
        assert response.json()["status"] == "in_progress"

        response = client.post(f"/issues/{issue_id}/close", headers=as_actor(technician))
        assert response.json()["status"] == "closed"

        view = client.get(f"/issues/{issue_id}").json()
        assert view["work_timing"] == "Time to fix 0m"

        entries = client.get(f"/issues/{issue_id}/activity").json()["entries"]
        assert [e["action"] for e in entries] == [
            "created",
            "assigned",
            "work_started",
            "status_changed",
            "work_completed",
            "status_changed",
        ]

        recent = client.get(f"/issues/{issue_id}/activity", params={"recent": 3}).json()["entries"]
        assert [e["details"] for e in recent] == ["Status → in_progress", "Marked complete", "Status → closed"]

    def test_permission_denied(self, client, issue_id, kitchen_staff):
        response = client.post(f"/issues/{issue_id}/start", headers=as_actor(kitchen_staff))

        assert response.status_code == 403
        assert response.json()["error"]["code"] == "PERMISSION_DENIED"

    def test_invalid_transition(self, client, issue_id, ops_manager):
        client.post(f"/issues/{issue_id}/close", headers=as_actor(ops_manager))

        response = client.post(f"/issues/{issue_id}/close", headers=as_actor(ops_manager))

        assert response.status_code == 409
        assert response.json()["error"]["code"] == "INVALID_TRANSITION"

    def test_unknown_issue(self, client, ops_manager):
        assert client.get("/issues/999").status_code == 404
        assert client.post("/issues/999/start", headers=as_actor(ops_manager)).status_code == 404

    def test_open_issue_view(self, client, issue_id):
        view = client.get(f"/issues/{issue_id}").json()

        assert view["work_timing"] is None
        assert view["time_remaining"] == "3d 0h remaining"

    def test_list_filters(self, client, issue_id, ops_manager):
        client.post(f"/issues/{issue_id}/start", headers=as_actor(ops_manager))

        assert len(client.get("/issues").json()) == 1
        assert len(client.get("/issues", params={"status": "in_progress"}).json()) == 1
        assert client.get("/issues", params={"status": "open", "priority": "all"}).json() == []
        assert client.get("/issues", params={"priority": "sometime"}).status_code == 422

    def test_stats(self, client, issue_id):
        stats = client.get("/issues/stats").json()
        assert stats == {"total": 1, "open": 1, "in_progress": 0, "closed": 0, "overdue": 0}


class TestActivitySummary:

    @pytest.fixture
    def closed_issue_id(self, client, issue_id, ops_manager, technician):
        client.post(
            f"/issues/{issue_id}/assign",
            json={"assigned_tech_id": technician.id},
            headers=as_actor(ops_manager),
        )
        client.post(f"/issues/{issue_id}/close", headers=as_actor(technician))
        return issue_id

    def test_summary_uses_default_window(self, client, closed_issue_id):
        entries = client.get(f"/issues/{closed_issue_id}/activity", params={"summary": True}).json()["entries"]

        assert [e["action"] for e in entries] == ["work_started", "work_completed", "status_changed"]

    def test_summary_window_follows_settings(self, service, issue_payload, ops_manager):
        client = TestClient(create_app(
            settings=Settings(log_level="WARNING", activity_summary_limit=2),
            service=service,
        ))
        issue_id = client.post("/issues", json=issue_payload, headers=as_actor(ops_manager)).json()["id"]
        client.post(f"/issues/{issue_id}/close", headers=as_actor(ops_manager))

        summary = client.get(f"/issues/{issue_id}/activity", params={"summary": True}).json()["entries"]
        full = client.get(f"/issues/{issue_id}/activity").json()["entries"]

        assert [e["action"] for e in summary] == ["work_completed", "status_changed"]
        assert len(full) == 4

    def test_explicit_recent_overrides_summary(self, client, closed_issue_id):
        params = {"summary": True, "recent": 1}
        entries = client.get(f"/issues/{closed_issue_id}/activity", params=params).json()["entries"]

        assert [e["action"] for e in entries] == ["status_changed"]
