"""Tests for the HTTP surface: status codes, wire format and error mapping."""
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from watersafe.main import create_app
from watersafe.services.lifecycle import ReportLifecycle
from watersafe.services.report_codes import ReportCodeGenerator

REPORTS = "/api/reports"


def create(client, **overrides):
    payload = {
        "location": "Lake X",
        "issueType": "pollution",
        "priority": "critical",
        "description": "oil sheen",
    }
    payload.update(overrides)
    response = client.post(REPORTS, json=payload)
    assert response.status_code == 201, response.text
    return response.json()


class TestHealth:

    def test_health(self, client):
        response = client.get("/api/health")

        assert response.status_code == 200
        body = response.json()
        assert body["ok"] is True
        assert body["timestamp"]


class TestIntake:

    def test_anonymous_critical_scenario(self, client, report_payload):
        response = client.post(REPORTS, json=report_payload)

        assert response.status_code == 201
        body = response.json()
        assert body["status"] == "PENDING"
        assert body["priority"] == "CRITICAL"
        assert body["description"].startswith("[pollution] ")
        assert body["submittedByName"] is None
        assert body["submittedByEmail"] is None
        assert body["contactForUpdates"] is False
        assert body["resolvedAt"] is None
        assert body["reportCode"].startswith("WS-")

    def test_coordinates_normalized_on_intake(self, client):
        body = create(client, coordinates="25.2°S, 89.3°W")
        assert body["coordinates"] == "-25.2,-89.3"

    def test_bad_coordinates_still_created(self, client):
        body = create(client, coordinates="north shore")
        assert body["coordinates"] is None

    def test_validation_errors_itemized(self, client):
        response = client.post(REPORTS, json={"priority": "urgent", "email": "nope"})

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "Validation failed"
        fields = {f["field"] for f in body["fields"]}
        assert {"location", "issueType", "priority", "description", "email"} <= fields
        assert client.get(REPORTS).json() == []

    def test_missing_body_is_400(self, client):
        response = client.post(REPORTS)

        assert response.status_code == 400
        assert response.json()["error"] == "Validation failed"

    def test_code_exhaustion_is_503(self, client, app):
        app.state.code_generator = ReportCodeGenerator(max_attempts=2, choose=lambda alphabet: "Z")
        create(client)

        response = client.post(REPORTS, json={
            "location": "Harbor", "issueType": "odor", "priority": "low", "description": "sulfur"
        })

        assert response.status_code == 503
        assert len(client.get(REPORTS).json()) == 1


class TestReads:

    def test_get_by_id(self, client):
        created = create(client)

        response = client.get(f"{REPORTS}/{created['id']}")

        assert response.status_code == 200
        assert response.json()["reportCode"] == created["reportCode"]

    def test_get_unknown_is_404(self, client):
        response = client.get(f"{REPORTS}/does-not-exist")

        assert response.status_code == 404
        assert response.json() == {"error": "Not found"}

    def test_list_filters(self, client):
        create(client, location="Lake X")
        create(client, location="Lakeside Park", priority="high")
        create(client, location="Harbor", description="sulfur")

        response = client.get(REPORTS, params={"status": "all", "priority": "critical", "search": "lake"})

        assert response.status_code == 200
        assert [r["location"] for r in response.json()] == ["Lake X"]

    def test_list_bad_filter_is_400(self, client):
        response = client.get(REPORTS, params={"status": "closed"})

        assert response.status_code == 400
        assert response.json()["fields"][0]["field"] == "status"

    def test_stats_and_map_points(self, client):
        create(client, coordinates="25.2N, 89.3E")
        create(client, priority="low")

        stats = client.get(f"{REPORTS}/stats").json()
        points = client.get(f"{REPORTS}/map-points").json()

        assert stats["total"] == 2
        assert stats["byStatus"]["PENDING"] == 2
        assert stats["byPriority"] == {"LOW": 1, "MEDIUM": 0, "HIGH": 0, "CRITICAL": 1}
        assert len(points) == 1
        assert points[0]["latitude"] == 25.2
        assert points[0]["longitude"] == 89.3


class TestModeration:

    def test_resolve_then_reprioritize(self, client):
        report = create(client)
        url = f"{REPORTS}/{report['id']}"

        resolved = client.patch(url, json={"status": "RESOLVED"}).json()
        assert resolved["resolvedAt"] is not None

        reprioritized = client.patch(url, json={"priority": "HIGH"}).json()
        assert reprioritized["resolvedAt"] == resolved["resolvedAt"]
        assert reprioritized["status"] == "RESOLVED"
        assert reprioritized["priority"] == "HIGH"

    def test_timestamps_are_utc_with_zulu_suffix(self, client):
        report = create(client)

        resolved = client.patch(f"{REPORTS}/{report['id']}", json={"status": "RESOLVED"}).json()

        for stamp in (resolved["submittedAt"], resolved["updatedAt"], resolved["resolvedAt"]):
            assert stamp.endswith("Z")
            parsed = datetime.fromisoformat(stamp[:-1] + "+00:00")
            assert parsed.utcoffset() == timedelta(0)
        assert abs(datetime.now(timezone.utc) - parsed) < timedelta(minutes=5)

    def test_official_response_fields(self, client):
        report = create(client)

        body = client.patch(f"{REPORTS}/{report['id']}", json={
            "officialResponse": "Investigation ongoing",
            "actionTaken": "Water access restricted"
        }).json()

        assert body["officialResponse"] == "Investigation ongoing"
        assert body["actionTaken"] == "Water access restricted"
        assert body["status"] == "PENDING"

    def test_empty_patch_is_noop(self, client):
        report = create(client)

        response = client.patch(f"{REPORTS}/{report['id']}", json={})

        assert response.status_code == 200
        assert response.json()["updatedAt"] == report["updatedAt"]

    def test_patch_unknown_is_404_without_side_effects(self, client):
        report = create(client)

        response = client.patch(f"{REPORTS}/unknown-id", json={"status": "RESOLVED"})

        assert response.status_code == 404
        assert response.json() == {"error": "Not found"}
        assert client.get(f"{REPORTS}/{report['id']}").json()["status"] == "PENDING"

    def test_patch_invalid_status_is_400(self, client):
        report = create(client)

        response = client.patch(f"{REPORTS}/{report['id']}", json={"status": "CLOSED"})

        assert response.status_code == 400

    def test_delete(self, client):
        report = create(client)
        url = f"{REPORTS}/{report['id']}"

        assert client.delete(url).status_code == 204
        assert client.get(url).status_code == 404
        assert client.delete(url).status_code == 404


class TestForwardOnlyApp:

    @pytest.fixture
    def strict_client(self, test_settings):
        settings = test_settings.model_copy(update={"forward_only_transitions": True})
        with TestClient(create_app(settings)) as strict:
            yield strict

    def test_reopen_refused_with_409(self, strict_client):
        report = create(strict_client)
        url = f"{REPORTS}/{report['id']}"
        strict_client.patch(url, json={"status": "RESOLVED"})

        response = strict_client.patch(url, json={"status": "PENDING"})

        assert response.status_code == 409
        assert response.json() == {
            "error": f"REFUSAL: Cannot move report {report['reportCode']} from RESOLVED back to PENDING",
            "from": "RESOLVED",
            "to": "PENDING",
        }
        assert strict_client.get(url).json()["status"] == "RESOLVED"


class TestStorageFailures:

    def test_storage_error_is_opaque_500(self, client, monkeypatch):
        def broken_create(self, new_report):
            raise OperationalError("INSERT INTO reports", {}, Exception("disk I/O error at /var/lib/db"))

        monkeypatch.setattr(ReportLifecycle, "create", broken_create)

        response = client.post(REPORTS, json={
            "location": "Lake X", "issueType": "pollution", "priority": "low", "description": "oil"
        })

        assert response.status_code == 500
        assert response.json() == {"error": "Internal server error"}
