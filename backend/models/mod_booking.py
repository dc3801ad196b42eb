from pydantic import BaseModel
from typing import Optional, List
from datetime import datetime, timedelta
from decimal import Decimal
from enum import Enum

SUPPORTED_DURATIONS = (30, 60, 90, 120)

class SessionType(str, Enum):
    VIRTUAL = "virtual"
    IN_PERSON = "in-person"

class BookingStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"

class PaymentStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"

class BookingChange(BaseModel):
    timestamp: datetime
    change_type: str  # 'status', 'payment' or 'cancellation'
    previous_value: Optional[str] = None
    new_value: Optional[str] = None

class ExistingBooking(BaseModel):
    """The slice of a stored booking the conflict checks need."""
    session_date: datetime
    duration: int
    status: BookingStatus = BookingStatus.PENDING

    @property
    def end(self) -> datetime:
        return self.session_date + timedelta(minutes=self.duration)

    @property
    def holds_slot(self) -> bool:
        return self.status != BookingStatus.CANCELLED

class BookingPayload(BaseModel):
    """A validated, priced booking that is ready to be persisted."""
    learner_id: str
    creator_id: str
    skill_id: str
    session_date: datetime
    duration: int
    session_type: SessionType
    location: Optional[str] = None
    notes: Optional[str] = None
    total_amount: Decimal
    platform_fee: Decimal
    creator_earnings: Decimal
    status: BookingStatus = BookingStatus.PENDING
    payment_status: PaymentStatus = PaymentStatus.PENDING

class Booking(BookingPayload):
    id: str
    payment_intent_id: Optional[str] = None
    slot_claims: List[str] = []
    changes: List[BookingChange] = []
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
