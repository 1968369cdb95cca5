"""
Tests for the history API endpoints.

Covers:
- GET /api/history
- GET /api/history/statistics
- GET /api/history/compare-vehicles
- GET /api/health
- Identity and error body handling
"""

import pytest
from services import event_sources


class TestIdentity:
    @pytest.mark.parametrize("path", [
        "/api/history",
        "/api/history/statistics",
        "/api/history/compare-vehicles?vehicle_ids=1,2",
    ])
    def test_missing_identity(self, client, path):
        response = client.get(path)

        assert response.status_code == 401
        body = response.get_json()
        assert body["success"] is False
        assert body["error"]["code"] == "E001"

    def test_malformed_identity(self, client):
        response = client.get("/api/history", headers={"X-User-Id": "admin"})

        assert response.status_code == 401

    def test_health_needs_no_identity(self, client):
        response = client.get("/api/health")

        assert response.status_code == 200
        assert response.get_json()["status"] == "online"


class TestHistoryEndpoint:
    def test_merged_timeline(self, client, auth_headers, merged_history):
        response = client.get("/api/history?type=all&sort_by=date&sort_order=desc", headers=auth_headers)

        assert response.status_code == 200
        data = response.get_json()["data"]
        assert [(item["type"], item["id"]) for item in data["items"]] == [
            ("fuel", merged_history["fuel_id"]),
            ("maintenance", merged_history["maintenance_id"]),
        ]
        assert data["pagination"] == {"total": 2, "limit": 50, "offset": 0, "has_more": False}
        assert data["filters_applied"]["type"] == "all"

    def test_invalid_filter(self, client, auth_headers):
        response = client.get("/api/history?category=tuning", headers=auth_headers)

        assert response.status_code == 400
        error = response.get_json()["error"]
        assert error["code"] == "E003"
        assert error["category"] == "validation"
        assert error["details"]["field"] == "category"

    def test_limit_out_of_range(self, client, auth_headers):
        response = client.get("/api/history?limit=500", headers=auth_headers)

        assert response.status_code == 400
        assert response.get_json()["error"]["code"] == "E004"

    def test_invalid_filter_never_reaches_store(self, client, auth_headers, monkeypatch):
        def fail(*args, **kwargs):
            raise AssertionError("store accessed")

        monkeypatch.setattr(event_sources, "envelope_select", fail)
        monkeypatch.setattr(event_sources, "count_maintenance_events", fail)

        response = client.get("/api/history?sort_by=price", headers=auth_headers)

        assert response.status_code == 400

    def test_foreign_vehicle_is_not_found(self, client, auth_headers, foreign_vehicle):
        response = client.get(f"/api/history?vehicle_id={foreign_vehicle.id}", headers=auth_headers)

        assert response.status_code == 404
        assert response.get_json()["error"]["code"] == "E411"

    def test_store_failure_is_500(self, client, auth_headers, monkeypatch):
        from exceptions import DatabaseError

        def broken(*args, **kwargs):
            raise DatabaseError("Store failure during count_fuel_events")

        monkeypatch.setattr(event_sources, "count_fuel_events", broken)

        response = client.get("/api/history", headers=auth_headers)

        assert response.status_code == 500
        assert response.get_json()["error"]["code"] == "E200"


class TestStatisticsEndpoint:
    def test_explicit_window(self, client, auth_headers, merged_history):
        response = client.get(
            "/api/history/statistics?start_date=2024-06-01&end_date=2024-07-31", headers=auth_headers
        )

        assert response.status_code == 200
        data = response.get_json()["data"]
        assert data["period"]["start_date"] == "2024-06-01"
        assert data["total_costs"]["total"] == 497.5
        assert data["cost_per_distance"]["total"] == 0.83

    def test_default_window(self, client, auth_headers):
        response = client.get("/api/history/statistics", headers=auth_headers)

        assert response.status_code == 200
        assert response.get_json()["data"]["period"]["days"] in range(181, 185)

    def test_unknown_period(self, client, auth_headers):
        response = client.get("/api/history/statistics?period=forever", headers=auth_headers)

        assert response.status_code == 400
        assert response.get_json()["error"]["details"]["field"] == "period"

    def test_foreign_vehicle(self, client, auth_headers, foreign_vehicle):
        response = client.get(f"/api/history/statistics?vehicle_id={foreign_vehicle.id}", headers=auth_headers)

        assert response.status_code == 404


class TestCompareEndpoint:
    def test_compare_two(self, client, auth_headers, vehicle, second_vehicle):
        ids = f"{vehicle.id},{second_vehicle.id}"

        response = client.get(
            f"/api/history/compare-vehicles?vehicle_ids={ids}&period=last_year", headers=auth_headers
        )

        assert response.status_code == 200
        data = response.get_json()["data"]
        assert len(data["vehicles"]) == 2
        assert [row["efficiency_rank"] for row in data["vehicles"]] == [1, 2]
        assert data["summary"]["best_consumption"] is None

    def test_six_ids_rejected_before_store(self, client, auth_headers, monkeypatch):
        def fail(*args, **kwargs):
            raise AssertionError("store accessed")

        monkeypatch.setattr(event_sources, "verify_vehicle_ownership", fail)

        response = client.get("/api/history/compare-vehicles?vehicle_ids=1,2,3,4,5,6", headers=auth_headers)

        assert response.status_code == 400
        error = response.get_json()["error"]
        assert error["code"] == "E006"
        assert error["details"]["bound"] == "max"
        assert "5" in error["message"]

    def test_single_id_rejected(self, client, auth_headers):
        response = client.get("/api/history/compare-vehicles?vehicle_ids=1", headers=auth_headers)

        assert response.status_code == 400

    def test_foreign_vehicle_is_forbidden(self, client, auth_headers, vehicle, foreign_vehicle):
        ids = f"{vehicle.id},{foreign_vehicle.id}"

        response = client.get(f"/api/history/compare-vehicles?vehicle_ids={ids}", headers=auth_headers)

        assert response.status_code == 403
        assert response.get_json()["error"]["code"] == "E410"


def test_unknown_route_uses_json_error(client):
    response = client.get("/api/nowhere")

    assert response.status_code == 404
    assert response.get_json()["success"] is False
