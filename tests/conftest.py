import threading
from datetime import datetime, time, timezone
from zoneinfo import ZoneInfo

import pytest
from azure.cosmos.exceptions import CosmosResourceExistsError, CosmosResourceNotFoundError

from backend.models.mod_availability import AvailabilityWindow

# 2026-10-19 is a Monday
MONDAY = datetime(2026, 10, 19).date()
UTC = ZoneInfo("UTC")

# Query parameters matched by equality on a document field
FIELD_PARAMETERS = {
    "@booking_id": "id",
    "@skill_id": "id",
    "@creator_id": "creator_id",
    "@learner_id": "learner_id",
}

class FakeContainer:
    """In-memory stand-in for a Cosmos container.

    Ids are unique like in Cosmos: creating an existing id raises a 409.
    Queries return `query_results` when set, otherwise every stored item.
    """

    def __init__(self, query_results=None):
        self.items = {}
        self.query_results = query_results
        self._lock = threading.Lock()

    def create_item(self, body):
        with self._lock:
            if body["id"] in self.items:
                raise CosmosResourceExistsError(
                    status_code=409, message="Entity with the specified id already exists in the system."
                )
            self.items[body["id"]] = dict(body)
        return body

    def upsert_item(self, body):
        with self._lock:
            self.items[body["id"]] = dict(body)
        return body

    def delete_item(self, item, partition_key=None):
        with self._lock:
            if item not in self.items:
                raise CosmosResourceNotFoundError(status_code=404, message="Entity not found")
            del self.items[item]

    def query_items(self, query, parameters=None, enable_cross_partition_query=None):
        if self.query_results is not None:
            return list(self.query_results)
        params = {p["name"]: p["value"] for p in parameters or []}
        with self._lock:
            items = list(self.items.values())
        if 'c.type = "booking"' in query:
            items = [i for i in items if i.get("type") == "booking"]
        for name, field in FIELD_PARAMETERS.items():
            if name in params:
                items = [i for i in items if i.get(field) == params[name]]
        if "@start" in params:
            items = [i for i in items if i["session_date"] >= params["@start"]]
        if "@end" in params:
            items = [i for i in items if i["session_date"] < params["@end"]]
        return items

    def claims(self):
        return sorted(k for k, v in self.items.items() if v.get("type") == "slot_claim")

    def bookings(self):
        return [v for v in self.items.values() if v.get("type") == "booking"]

@pytest.fixture
def make_container():
    return FakeContainer

@pytest.fixture
def monday():
    return MONDAY

@pytest.fixture
def utc():
    return UTC

@pytest.fixture
def week_before():
    """A fixed 'now' one week before the Monday used in the tests"""
    return datetime(2026, 10, 12, 8, 0, tzinfo=timezone.utc)

@pytest.fixture
def monday_morning():
    """Monday 09:00-12:00 for creator123"""
    return [
        AvailabilityWindow(
            creator_id="creator123",
            day_of_week=1,
            start_time=time(9, 0),
            end_time=time(12, 0),
            is_available=True
        )
    ]

@pytest.fixture
def skill_item():
    return {
        "id": "skill456",
        "creator_id": "creator123",
        "title": "Sourdough basics",
        "price": "45.00",
        "duration": 60,
        "session_type": "both",
        "is_approved": True,
        "is_active": True
    }

@pytest.fixture
def availability_item():
    return {
        "id": "creator123",
        "creator_id": "creator123",
        "windows": [
            {"day_of_week": 1, "start_time": "09:00", "end_time": "12:00", "is_available": True}
        ],
        "updated_at": "2026-10-01T12:00:00+00:00"
    }
