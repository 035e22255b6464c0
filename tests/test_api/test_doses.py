"""
Tests for Doses API
===================

Tests marking doses taken or missed, duplicate handling and error mapping.
"""

import pytest
from fastapi import status
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from config import settings
from errors import TransientStoreError
from services.dose_store import DoseStore


SCHEDULED = "2024-03-10T08:00:00Z"


def scheduled_time_of_first_dose(client: TestClient, headers) -> str:
    response = client.get("/api/v1/schedule/", headers=headers)
    assert response.status_code == status.HTTP_200_OK
    return response.json()["doses"][0]["scheduled_time"]


# ==================== MARK TAKEN ====================

class TestMarkTaken:
    """Tests for POST /doses/taken"""

    @pytest.mark.api
    def test_mark_taken_from_schedule(self, client: TestClient, fixed_clock, auth_headers, test_medication):
        scheduled = scheduled_time_of_first_dose(client, auth_headers)

        response = client.post(
            "/api/v1/doses/taken",
            json={"medication_id": test_medication.id, "scheduled_time": scheduled},
            headers=auth_headers
        )

        assert response.status_code == status.HTTP_201_CREATED
        data = response.json()
        assert data["medication_id"] == test_medication.id
        assert data["scheduled_time"] == "2024-03-10T08:00:00Z"
        assert data["actual_time"] == "2024-03-10T09:30:00Z"
        assert data["taken_on_time"] is True
        assert data["reward_earned"] is True
        assert data["missed"] is False
        assert data["already_recorded"] is False

    @pytest.mark.api
    def test_late_dose(self, client: TestClient, fixed_clock, auth_headers, test_medication):
        response = client.post(
            "/api/v1/doses/taken",
            json={
                "medication_id": test_medication.id,
                "scheduled_time": SCHEDULED,
                "taken_at": "2024-03-10T13:00:00Z"
            },
            headers=auth_headers
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert response.json()["taken_on_time"] is False
        assert response.json()["reward_earned"] is False

    @pytest.mark.api
    def test_repeat_returns_existing_log(self, client: TestClient, fixed_clock, auth_headers, test_medication):
        body = {"medication_id": test_medication.id, "scheduled_time": SCHEDULED}
        first = client.post("/api/v1/doses/taken", json=body, headers=auth_headers)

        second = client.post("/api/v1/doses/taken", json=body, headers=auth_headers)

        assert second.status_code == status.HTTP_200_OK
        assert second.json()["id"] == first.json()["id"]
        assert second.json()["already_recorded"] is True

    @pytest.mark.api
    def test_other_users_medication(self, client: TestClient, fixed_clock, other_user, test_medication):
        response = client.post(
            "/api/v1/doses/taken",
            json={"medication_id": test_medication.id, "scheduled_time": SCHEDULED},
            headers={"X-User-Id": str(other_user.id)}
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.json()["error"] is True

    @pytest.mark.api
    def test_unknown_medication(self, client: TestClient, fixed_clock, auth_headers):
        response = client.post(
            "/api/v1/doses/taken",
            json={"medication_id": 999, "scheduled_time": SCHEDULED},
            headers=auth_headers
        )

        assert response.status_code == status.HTTP_404_NOT_FOUND

    @pytest.mark.api
    def test_time_that_is_not_a_dose(self, client: TestClient, fixed_clock, auth_headers, test_medication):
        response = client.post(
            "/api/v1/doses/taken",
            json={"medication_id": test_medication.id, "scheduled_time": "2024-03-10T09:00:00Z"},
            headers=auth_headers
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["status_code"] == 400

    @pytest.mark.api
    def test_missing_user_header(self, client: TestClient, test_medication):
        response = client.post(
            "/api/v1/doses/taken",
            json={"medication_id": test_medication.id, "scheduled_time": SCHEDULED}
        )

        assert response.status_code == 422

    @pytest.mark.api
    def test_unknown_user(self, client: TestClient, test_medication):
        response = client.post(
            "/api/v1/doses/taken",
            json={"medication_id": test_medication.id, "scheduled_time": SCHEDULED},
            headers={"X-User-Id": "9999"}
        )

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    @pytest.mark.api
    def test_store_unavailable(self, client: TestClient, fixed_clock, auth_headers, test_medication, monkeypatch):
        def unavailable(self, *args, **kwargs):
            raise TransientStoreError("insert dose log failed after 3 attempts")

        monkeypatch.setattr(DoseStore, "insert_dose_log", unavailable)

        response = client.post(
            "/api/v1/doses/taken",
            json={"medication_id": test_medication.id, "scheduled_time": SCHEDULED},
            headers=auth_headers
        )

        assert response.status_code == status.HTTP_503_SERVICE_UNAVAILABLE
        assert "retry-after" in response.headers

    @pytest.mark.api
    def test_user_lookup_unavailable(self, client: TestClient, db_session, fixed_clock, auth_headers,
                                     test_medication, monkeypatch):
        def locked(*args, **kwargs):
            raise OperationalError("SELECT users", {}, Exception("database is locked"))

        monkeypatch.setattr(settings, "STORE_RETRY_BACKOFF_SECONDS", 0.0)
        monkeypatch.setattr(db_session, "query", locked)

        response = client.post(
            "/api/v1/doses/taken",
            json={"medication_id": test_medication.id, "scheduled_time": SCHEDULED},
            headers=auth_headers
        )

        assert response.status_code == status.HTTP_503_SERVICE_UNAVAILABLE
        assert "retry-after" in response.headers


# ==================== MARK MISSED ====================

class TestMarkMissed:
    """Tests for POST /doses/missed"""

    @pytest.mark.api
    def test_mark_missed(self, client: TestClient, fixed_clock, auth_headers, test_medication):
        response = client.post(
            "/api/v1/doses/missed",
            json={"medication_id": test_medication.id, "scheduled_time": SCHEDULED},
            headers=auth_headers
        )

        assert response.status_code == status.HTTP_201_CREATED
        data = response.json()
        assert data["missed"] is True
        assert data["taken_on_time"] is False
        assert data["reward_earned"] is False

        schedule = client.get("/api/v1/schedule/", headers=auth_headers).json()
        assert schedule["doses"][0]["status"] == "missed"

    @pytest.mark.api
    def test_missed_after_taken_keeps_taken(self, client: TestClient, fixed_clock, auth_headers, test_medication):
        body = {"medication_id": test_medication.id, "scheduled_time": SCHEDULED}
        client.post("/api/v1/doses/taken", json=body, headers=auth_headers)

        response = client.post("/api/v1/doses/missed", json=body, headers=auth_headers)

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["already_recorded"] is True
        assert response.json()["missed"] is False


# ==================== HISTORY ====================

class TestDoseLogs:
    """Tests for GET /doses/logs"""

    @pytest.mark.api
    def test_history(self, client: TestClient, fixed_clock, auth_headers, week_of_logs):
        response = client.get(
            "/api/v1/doses/logs",
            params={"start_date": "2024-03-03", "end_date": "2024-03-09"},
            headers=auth_headers
        )

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["total_entries"] == 7
        assert data["entries"][0]["medication_name"] == "Atorvastatin"
        assert data["entries"][0]["scheduled_time"] == "2024-03-03T08:00:00Z"
        assert [e["missed"] for e in data["entries"]].count(True) == 1

    @pytest.mark.api
    def test_reversed_range(self, client: TestClient, fixed_clock, auth_headers):
        response = client.get(
            "/api/v1/doses/logs",
            params={"start_date": "2024-03-09", "end_date": "2024-03-03"},
            headers=auth_headers
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    @pytest.mark.api
    def test_range_over_limit(self, client: TestClient, fixed_clock, auth_headers):
        response = client.get(
            "/api/v1/doses/logs",
            params={"start_date": "2020-01-01", "end_date": "2024-03-10"},
            headers=auth_headers
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
