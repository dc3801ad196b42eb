import pytest
from unittest.mock import MagicMock
from datetime import datetime, time, timezone

from backend.services.svc_availability import AvailabilityService
from backend.schemas.sch_availability import AvailabilitySet, AvailabilityWindowCreate
from backend.validators.val_availability import AvailabilityValidationError, AvailabilityValidator

@pytest.fixture
def mock_db():
    return MagicMock()

@pytest.fixture
def weekly_schedule():
    return AvailabilitySet(windows=[
        AvailabilityWindowCreate(day_of_week=3, start_time=time(14, 0), end_time=time(16, 0)),
        AvailabilityWindowCreate(day_of_week=1, start_time=time(9, 0), end_time=time(12, 0)),
    ])

def test_set_availability_is_one_upsert(mock_db, weekly_schedule):
    now = datetime(2026, 10, 1, 12, 0, tzinfo=timezone.utc)

    result = AvailabilityService.set_creator_availability(mock_db, "creator123", weekly_schedule, now)

    mock_db.upsert_item.assert_called_once()
    body = mock_db.upsert_item.call_args.kwargs["body"]
    assert body["id"] == "creator123"
    assert body["windows"][0] == {
        "day_of_week": 3, "start_time": "14:00", "end_time": "16:00", "is_available": True
    }
    assert body["updated_at"] == "2026-10-01T12:00:00+00:00"
    assert [w.day_of_week for w in result.windows] == [1, 3]

def test_set_empty_schedule(mock_db):
    result = AvailabilityService.set_creator_availability(mock_db, "creator123", AvailabilitySet(windows=[]))

    assert result.windows == []
    assert mock_db.upsert_item.call_args.kwargs["body"]["windows"] == []

def test_replacing_a_schedule_drops_old_windows(make_container, weekly_schedule):
    db = make_container()
    AvailabilityService.set_creator_availability(db, "creator123", weekly_schedule)

    replacement = AvailabilitySet(windows=[
        AvailabilityWindowCreate(day_of_week=5, start_time=time(10, 0), end_time=time(11, 0))
    ])
    AvailabilityService.set_creator_availability(db, "creator123", replacement)

    windows = AvailabilityService.get_creator_windows(db, "creator123")
    assert [(w.day_of_week, w.start_time) for w in windows] == [(5, time(10, 0))]

def test_get_availability(mock_db, availability_item):
    mock_db.query_items.return_value = [availability_item]

    availability = AvailabilityService.get_creator_availability(mock_db, "creator123")

    assert availability.creator_id == "creator123"
    assert availability.windows[0].start_time == time(9, 0)
    assert availability.windows[0].end_time == time(12, 0)
    assert availability.windows[0].creator_id == "creator123"
    assert mock_db.query_items.call_args.kwargs["parameters"] == [
        {"name": "@creator_id", "value": "creator123"}
    ]

def test_get_availability_not_found(mock_db):
    mock_db.query_items.return_value = []

    assert AvailabilityService.get_creator_availability(mock_db, "creator123") is None
    assert AvailabilityService.get_creator_windows(mock_db, "creator123") == []

def test_disabled_windows_are_kept(mock_db, availability_item):
    availability_item["windows"][0]["is_available"] = False
    mock_db.query_items.return_value = [availability_item]

    windows = AvailabilityService.get_creator_windows(mock_db, "creator123")

    assert windows[0].is_available is False

def test_response_uses_hh_mm(mock_db, availability_item):
    mock_db.query_items.return_value = [availability_item]
    availability = AvailabilityService.get_creator_availability(mock_db, "creator123")

    response = AvailabilityService.to_response(availability)

    assert response["windows"][0]["start_time"] == "09:00"
    assert response["windows"][0]["end_time"] == "12:00"

def test_storage_errors_propagate(mock_db, weekly_schedule):
    mock_db.upsert_item.side_effect = Exception("Database error")

    with pytest.raises(Exception) as exc_info:
        AvailabilityService.set_creator_availability(mock_db, "creator123", weekly_schedule)

    assert str(exc_info.value) == "Database error"

def test_window_must_end_after_it_starts():
    window = MagicMock(day_of_week=1, start_time=time(12, 0), end_time=time(9, 0))

    with pytest.raises(AvailabilityValidationError) as exc_info:
        AvailabilityValidator.validate_window(window)

    assert exc_info.value.detail["code"] == "invalid_availability"

def test_day_must_be_in_range():
    window = MagicMock(day_of_week=7, start_time=time(9, 0), end_time=time(12, 0))

    with pytest.raises(AvailabilityValidationError):
        AvailabilityValidator.validate_window(window)

def test_seconds_are_rejected():
    window = MagicMock(day_of_week=1, start_time=time(9, 0, 30), end_time=time(12, 0))

    with pytest.raises(AvailabilityValidationError):
        AvailabilityValidator.validate_window(window)

def test_overlapping_windows_are_accepted():
    windows = [
        MagicMock(day_of_week=1, start_time=time(9, 0), end_time=time(11, 0)),
        MagicMock(day_of_week=1, start_time=time(10, 0), end_time=time(12, 0)),
    ]

    AvailabilityValidator.validate_set_availability("creator123", windows)

def test_creator_is_required():
    with pytest.raises(AvailabilityValidationError):
        AvailabilityValidator.validate_set_availability("", [])

def test_schema_rejects_inverted_window():
    with pytest.raises(ValueError):
        AvailabilityWindowCreate(day_of_week=1, start_time=time(12, 0), end_time=time(9, 0))
