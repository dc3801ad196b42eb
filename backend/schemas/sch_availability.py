from pydantic import BaseModel, validator
from typing import List, Optional
from datetime import datetime, date, time

class AvailabilityWindowCreate(BaseModel):
    day_of_week: int
    start_time: time
    end_time: time
    is_available: bool = True

    @validator('day_of_week')
    def validate_day_of_week(cls, v):
        if not (0 <= v <= 6):
            raise ValueError('day_of_week must be between 0 (Sunday) and 6 (Saturday)')
        return v

    @validator('end_time')
    def end_time_must_be_after_start_time(cls, v, values):
        if 'start_time' in values and v <= values['start_time']:
            raise ValueError('end_time must be after start_time')
        return v

class AvailabilitySet(BaseModel):
    """Replaces every window of a creator's weekly schedule."""
    windows: List[AvailabilityWindowCreate]

class AvailabilityWindowResponse(BaseModel):
    day_of_week: int
    start_time: str  # HH:MM
    end_time: str    # HH:MM
    is_available: bool

class AvailabilityResponse(BaseModel):
    creator_id: str
    windows: List[AvailabilityWindowResponse]
    updated_at: Optional[datetime] = None

class SlotResponse(BaseModel):
    session_date: date
    start_time: str  # HH:MM
    duration_minutes: int

class SlotListResponse(BaseModel):
    creator_id: str
    session_date: date
    timezone: str
    slots: List[SlotResponse]
