import pytest
from unittest.mock import patch
from fastapi.testclient import TestClient
from fastapi import FastAPI
from datetime import datetime, timezone

from backend.routers.rou_availability import router
from backend.configuration.database import get_availabilities_container, get_bookings_container
from backend.dependencies.dep_scheduling import get_clock
from backend.services.svc_availability import AvailabilityService

app = FastAPI()
app.include_router(router)

@pytest.fixture
def client():
    return TestClient(app)

@pytest.fixture
def containers(make_container, week_before):
    bookings_db = make_container()
    availability_db = make_container()
    app.dependency_overrides[get_bookings_container] = lambda: bookings_db
    app.dependency_overrides[get_availabilities_container] = lambda: availability_db
    app.dependency_overrides[get_clock] = lambda: week_before
    yield bookings_db, availability_db
    app.dependency_overrides.clear()

@pytest.fixture
def schedule_payload():
    return {
        "windows": [
            {"day_of_week": 1, "start_time": "09:00", "end_time": "12:00"},
            {"day_of_week": 3, "start_time": "14:00", "end_time": "16:00", "is_available": False}
        ]
    }

def test_get_availability_without_schedule(client, containers):
    response = client.get("/creators/creator123/availability")

    assert response.status_code == 200
    assert response.json() == {"creator_id": "creator123", "windows": [], "updated_at": None}

def test_set_and_get_availability(client, containers, schedule_payload):
    response = client.put("/creators/creator123/availability", json=schedule_payload)

    assert response.status_code == 200
    assert response.json()["windows"][0] == {
        "day_of_week": 1, "start_time": "09:00", "end_time": "12:00", "is_available": True
    }

    response = client.get("/creators/creator123/availability")

    assert response.status_code == 200
    assert len(response.json()["windows"]) == 2
    assert response.json()["windows"][1]["is_available"] is False
    assert response.json()["updated_at"].startswith("2026-10-12T08:00:00")

def test_set_availability_rejects_inverted_window(client, containers):
    payload = {"windows": [{"day_of_week": 1, "start_time": "12:00", "end_time": "09:00"}]}

    response = client.put("/creators/creator123/availability", json=payload)

    assert response.status_code == 422

def test_set_availability_rejects_unknown_day(client, containers):
    payload = {"windows": [{"day_of_week": 7, "start_time": "09:00", "end_time": "12:00"}]}

    response = client.put("/creators/creator123/availability", json=payload)

    assert response.status_code == 422

def test_list_slots(client, containers, schedule_payload):
    client.put("/creators/creator123/availability", json=schedule_payload)

    response = client.get("/creators/creator123/slots", params={"date": "2026-10-19", "duration": 30})

    assert response.status_code == 200
    data = response.json()
    assert data["timezone"] == "UTC"
    assert data["session_date"] == "2026-10-19"
    assert [s["start_time"] for s in data["slots"]] == ["09:00", "09:30", "10:00", "10:30", "11:00", "11:30"]
    assert all(s["duration_minutes"] == 30 for s in data["slots"])

def test_disabled_window_has_no_slots(client, containers, schedule_payload):
    client.put("/creators/creator123/availability", json=schedule_payload)

    # Wednesday
    response = client.get("/creators/creator123/slots", params={"date": "2026-10-21"})

    assert response.status_code == 200
    assert response.json()["slots"] == []

def test_list_slots_in_a_timezone(client, containers, schedule_payload):
    client.put("/creators/creator123/availability", json=schedule_payload)
    # 08:30 EDT on the Monday
    app.dependency_overrides[get_clock] = lambda: datetime(2026, 10, 19, 12, 30, tzinfo=timezone.utc)

    response = client.get(
        "/creators/creator123/slots",
        params={"date": "2026-10-19", "duration": 30, "tz": "America/New_York"}
    )

    assert response.status_code == 200
    assert response.json()["timezone"] == "America/New_York"
    assert response.json()["slots"][0]["start_time"] == "09:30"

def test_list_slots_for_past_date(client, containers, schedule_payload):
    client.put("/creators/creator123/availability", json=schedule_payload)

    response = client.get("/creators/creator123/slots", params={"date": "2026-10-05"})

    assert response.status_code == 200
    assert response.json()["slots"] == []

def test_list_slots_invalid_duration(client, containers):
    response = client.get("/creators/creator123/slots", params={"date": "2026-10-19", "duration": 45})

    assert response.status_code == 400
    assert response.json()["detail"]["code"] == "invalid_duration"

def test_list_slots_invalid_timezone(client, containers):
    response = client.get("/creators/creator123/slots", params={"date": "2026-10-19", "tz": "Nowhere/City"})

    assert response.status_code == 400
    assert response.json()["detail"]["code"] == "invalid_timezone"

def test_list_slots_requires_date(client, containers):
    response = client.get("/creators/creator123/slots")

    assert response.status_code == 422

def test_storage_failure_surfaces(client, containers, schedule_payload):
    with patch.object(AvailabilityService, "set_creator_availability", side_effect=Exception("Database error")):
        with pytest.raises(Exception):
            client.put("/creators/creator123/availability", json=schedule_payload)
