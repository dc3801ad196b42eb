from pydantic import BaseModel, Field, validator
from typing import Optional, List
from datetime import datetime, date, time
from decimal import Decimal
from backend.models.mod_booking import (
    SUPPORTED_DURATIONS, SessionType, BookingStatus, PaymentStatus, BookingChange
)
from backend.services.svc_conflicts import load_timezone

class BookingCreate(BaseModel):
    learner_id: str
    skill_id: str
    session_date: date = Field(
        description="Calendar date of the session (e.g. 2026-10-19)"
    )
    start_time: time = Field(
        description="Wall-clock start time in the booking timezone (e.g. 14:30)"
    )
    duration: int = Field(default=60, description="Session length in minutes")
    session_type: SessionType
    location: Optional[str] = None
    notes: Optional[str] = None
    timezone: Optional[str] = Field(
        default=None,
        description="IANA timezone the date and time are expressed in (e.g. Europe/Madrid)"
    )

    @validator('duration')
    def duration_must_be_supported(cls, v):
        if v not in SUPPORTED_DURATIONS:
            raise ValueError(f'duration must be one of {list(SUPPORTED_DURATIONS)}')
        return v

    @validator('timezone')
    def timezone_must_exist(cls, v):
        if v is not None:
            load_timezone(v)
        return v

class BookingStatusUpdate(BaseModel):
    status: BookingStatus

class BookingPaymentUpdate(BaseModel):
    payment_status: PaymentStatus
    payment_intent_id: Optional[str] = None

class BookingResponse(BaseModel):
    id: str
    learner_id: str
    creator_id: str
    skill_id: str
    session_date: datetime
    duration: int
    session_type: SessionType
    location: Optional[str]
    notes: Optional[str]
    total_amount: Decimal
    platform_fee: Decimal
    creator_earnings: Decimal
    status: BookingStatus
    payment_status: PaymentStatus
    payment_intent_id: Optional[str]
    changes: List[BookingChange] = []
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
