"""Tests for the FastAPI API endpoints."""

import pytest
from fastapi.testclient import TestClient

from practice_kernel.api.app import create_app
from practice_kernel.models.practice import SimulationConfig
from practice_kernel.simulation.runtime import Simulation


@pytest.fixture
def client():
    """Create a test client over a fresh practice with one therapist and one client."""
    simulation = Simulation(SimulationConfig(spawn_clients=False, seed=1))
    test_client = TestClient(create_app(simulation))
    test_client.post("/therapists", json={"id": "t1", "display_name": "Dr. Rivera"})
    test_client.post("/clients", json={
        "id": "c1",
        "display_name": "Client One",
        "condition_category": "stress",
    })
    return test_client


def _book(client, hour=9, day=1):
    return client.post("/sessions", json={
        "therapist_id": "t1",
        "client_id": "c1",
        "day": day,
        "hour": hour,
    })


class TestHealthAndClock:
    def test_health(self, client):
        data = client.get("/health").json()
        assert data["status"] == "healthy"
        assert data["therapists"] == 1
        assert data["clients"] == 1

    def test_time(self, client):
        data = client.get("/time").json()
        assert data["time"]["formatted"] == "Day 1, 8:00 AM"
        assert data["paused"] is False

    def test_tick(self, client):
        response = client.post("/clock/tick", json={"interval_ms": 30000})
        assert response.status_code == 200
        data = response.json()
        assert data["advanced"] is True
        assert data["result"]["minutes_elapsed"] == 60
        assert data["time"]["hour"] == 9

    def test_sub_minute_tick_does_not_advance(self, client):
        data = client.post("/clock/tick", json={"interval_ms": 100}).json()
        assert data["advanced"] is False
        assert data["result"] is None

    def test_negative_tick_rejected(self, client):
        response = client.post("/clock/tick", json={"interval_ms": -5})
        assert response.status_code == 422

    def test_skip_lands_on_session_start(self, client):
        _book(client, hour=10)
        response = client.post("/clock/skip", json={"day": 1, "hour": 15})
        assert response.status_code == 200
        assert response.json()["new_time"]["hour"] == 10
        assert response.json()["sessions_started"]

        blocked = client.post("/clock/skip", json={"day": 1, "hour": 15})
        assert blocked.status_code == 409

    def test_skip_backwards_refused(self, client):
        client.post("/clock/tick", json={"interval_ms": 60000})
        response = client.post("/clock/skip", json={"day": 1, "hour": 8})
        assert response.status_code == 409

    def test_skip_next_and_reports(self, client):
        response = client.post("/clock/skip-next")
        assert response.status_code == 200
        assert response.json()["time"]["day"] == 2

        reports = client.get("/reports").json()
        assert len(reports) == 1
        assert reports[0]["day"] == 2


class TestSessionEndpoints:
    def test_book_session(self, client):
        response = _book(client)
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "scheduled"
        assert data["scheduled_hour"] == 9
        assert len(client.get("/sessions").json()) == 1

    def test_book_unknown_therapist(self, client):
        response = client.post("/sessions", json={
            "therapist_id": "nobody", "client_id": "c1", "day": 1, "hour": 9,
        })
        assert response.status_code == 404

    def test_book_conflict(self, client):
        response = _book(client, hour=20)
        assert response.status_code == 409
        assert response.json()["detail"] == "Outside business hours at 20:00"

    def test_cancel_session(self, client):
        session_id = _book(client).json()["id"]
        response = client.delete(f"/sessions/{session_id}", params={"reason": "Illness"})
        assert response.status_code == 200
        assert response.json()["status"] == "cancelled"

        again = client.delete(f"/sessions/{session_id}")
        assert again.status_code == 409
        assert client.delete("/sessions/missing").status_code == 404

    def test_reschedule_session(self, client):
        session_id = _book(client).json()["id"]
        response = client.post(f"/sessions/{session_id}/reschedule", json={
            "therapist_id": "t1", "day": 2, "hour": 13,
        })
        assert response.status_code == 200
        data = response.json()
        assert data["id"] == session_id
        assert (data["scheduled_day"], data["scheduled_hour"]) == (2, 13)

    def test_session_completes_via_ticks(self, client):
        _book(client)
        client.post("/clock/skip", json={"day": 1, "hour": 12})
        client.post("/clock/tick", json={"interval_ms": 25000})
        session = client.get("/sessions").json()[0]
        assert session["status"] == "completed"
        assert session["completed_at"] == {"day": 1, "hour": 9, "minute": 50}

    def test_room_availability(self, client):
        _book(client)
        data = client.get("/rooms/1/9").json()
        assert data["total_rooms"] == 1
        assert data["rooms_in_use"] == 1
        assert data["can_book_in_person"] is False

    def test_building_upgrades(self, client):
        assert client.get("/buildings/upgrades").json() == []
        client.app.state.store.state.practice_level = 2
        data = client.get("/buildings/upgrades").json()
        assert [b["id"] for b in data] == ["small_office"]


class TestSuggestionsAndTraining:
    def test_suggestions(self, client):
        data = client.get("/suggestions").json()
        assert len(data["suggestions"]) == 1
        assert data["suggestions"][0]["client_id"] == "c1"
        assert data["suggestions"][0]["urgency"] == "normal"

    def test_training_requires_funds(self, client):
        response = client.post("/trainings", json={
            "therapist_id": "t1", "program_id": "cbt_training",
        })
        assert response.status_code == 409
        assert response.json()["detail"] == "Insufficient funds (need $1500)"

    def test_training_enrollment(self, client):
        client.app.state.store.adjust_balance(1000)
        response = client.post("/trainings", json={
            "therapist_id": "t1", "program_id": "telehealth_training",
        })
        assert response.status_code == 200
        assert response.json()["status"] == "enrolled"
        therapist = client.get("/therapists").json()[0]
        assert therapist["status"] == "in_training"

    def test_unknown_program(self, client):
        response = client.post("/trainings", json={
            "therapist_id": "t1", "program_id": "juggling",
        })
        assert response.status_code == 404
