from pydantic import BaseModel
from typing import List, Optional
from datetime import datetime, date, time

# Sunday=0 .. Saturday=6, the convention used by stored schedules
DAY_NAMES = ["sunday", "monday", "tuesday", "wednesday", "thursday", "friday", "saturday"]

SLOT_MINUTES = 30

def day_of_week(value: date) -> int:
    """Sunday-based day index of a calendar date."""
    return (value.weekday() + 1) % 7

class AvailabilityWindow(BaseModel):
    creator_id: str
    day_of_week: int
    start_time: time
    end_time: time
    is_available: bool = True

    class Config:
        from_attributes = True

class CreatorAvailability(BaseModel):
    """A creator's whole weekly schedule, stored and replaced as one document."""
    id: str
    creator_id: str
    windows: List[AvailabilityWindow]
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class Slot(BaseModel):
    session_date: date
    start_time: time
    duration_minutes: int = SLOT_MINUTES
