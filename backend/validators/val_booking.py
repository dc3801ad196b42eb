from datetime import datetime, timezone, tzinfo
from enum import Enum
from typing import Iterable, List, Optional
from fastapi import HTTPException
from backend.configuration.config import Config
from backend.configuration.monitor import log_event, log_warning
from backend.models.mod_availability import AvailabilityWindow
from backend.models.mod_booking import (
    BookingPayload, BookingStatus, ExistingBooking, PaymentStatus
)
from backend.models.mod_skill import Skill
from backend.schemas.sch_booking import BookingCreate
from backend.services.svc_conflicts import ConflictFilter, SlotRejection, load_timezone
from backend.services.svc_pricing import PricingEngine
from backend.services.svc_slots import SlotGenerator

class BookingValidationError(HTTPException):
    status = 400
    code = "booking_invalid"
    message = "The booking request is not valid"

    def __init__(self, message: Optional[str] = None):
        super().__init__(
            status_code=self.status,
            detail={"code": self.code, "message": message or self.message}
        )

class SkillNotFoundError(BookingValidationError):
    status = 404
    code = "skill_not_found"
    message = "Skill not found"

class SkillUnavailableError(BookingValidationError):
    status = 409
    code = "skill_unavailable"
    message = "This skill is not currently open for bookings"

class UnsupportedSessionTypeError(BookingValidationError):
    code = "unsupported_session_type"
    message = "This skill is not offered for the requested session type"

class SlotUnavailableError(BookingValidationError):
    # One error for every scheduling reason, so callers learn nothing about other bookings
    status = 409
    code = "slot_unavailable"
    message = "The requested time is no longer available, please pick another slot"

class InvalidStatusTransitionError(BookingValidationError):
    code = "invalid_transition"
    message = "The booking cannot move to the requested status"

class ValidationStage(str, Enum):
    RECEIVED = "received"
    SKILL_CHECKED = "skill_checked"
    TYPE_CHECKED = "type_checked"
    SLOT_CONFIRMED = "slot_confirmed"
    PRICED = "priced"

STATUS_TRANSITIONS = {
    BookingStatus.PENDING: {BookingStatus.CONFIRMED, BookingStatus.CANCELLED},
    BookingStatus.CONFIRMED: {BookingStatus.IN_PROGRESS, BookingStatus.CANCELLED},
    BookingStatus.IN_PROGRESS: {BookingStatus.COMPLETED},
    BookingStatus.COMPLETED: {BookingStatus.REFUNDED},
    BookingStatus.CANCELLED: {BookingStatus.REFUNDED},
    BookingStatus.REFUNDED: set(),
}

PAYMENT_TRANSITIONS = {
    PaymentStatus.PENDING: {PaymentStatus.PAID, PaymentStatus.FAILED},
    PaymentStatus.FAILED: {PaymentStatus.PAID, PaymentStatus.PENDING},
    PaymentStatus.PAID: {PaymentStatus.REFUNDED},
    PaymentStatus.REFUNDED: set(),
}

class BookingValidator:
    @staticmethod
    def resolve_timezone(request: BookingCreate, tz: Optional[tzinfo] = None) -> tzinfo:
        if tz is not None:
            return tz
        return load_timezone(request.timezone or Config.DEFAULT_TIMEZONE)

    @staticmethod
    def validate_skill(skill: Optional[Skill]) -> Skill:
        """Validate that the skill exists and is approved and active"""
        if skill is None:
            raise SkillNotFoundError()
        if not skill.is_approved or not skill.is_active:
            raise SkillUnavailableError()
        return skill

    @staticmethod
    def validate_session_type(skill: Skill, session_type: str):
        """Validate that the skill is offered for the requested session type"""
        if not skill.supports(session_type):
            raise UnsupportedSessionTypeError(
                f"This skill is offered as {skill.session_type.value} only"
            )

    @staticmethod
    def validate_slot(
        request: BookingCreate,
        creator_id: str,
        windows: Iterable[AvailabilityWindow],
        existing_bookings: Iterable[ExistingBooking],
        now: datetime,
        tz: tzinfo
    ) -> datetime:
        """
        Validate that the requested start is one of the bookable slots of its date.

        Returns the session start as an aware UTC timestamp.
        """
        existing: List[ExistingBooking] = list(existing_bookings)
        raw = SlotGenerator.generate_slots(windows, request.session_date)
        available = ConflictFilter.filter_slots(
            raw, request.session_date, now, existing, request.duration, tz
        )
        if request.start_time not in set(available):
            if request.start_time not in raw:
                reason = SlotRejection.OUTSIDE_AVAILABILITY
            else:
                reason = ConflictFilter.rejection_reason(
                    request.session_date, request.start_time, now, existing, request.duration, tz
                )
            log_warning("Booking slot rejected", {
                "creator_id": creator_id,
                "learner_id": request.learner_id,
                "session_date": request.session_date.isoformat(),
                "start_time": request.start_time.strftime("%H:%M"),
                "reason": reason.value if reason else "unknown"
            })
            raise SlotUnavailableError()

        start = ConflictFilter.slot_start(request.session_date, request.start_time, tz)
        return start.astimezone(timezone.utc)

    @staticmethod
    def validate_and_price_booking(
        request: BookingCreate,
        skill: Optional[Skill],
        windows: Iterable[AvailabilityWindow],
        existing_bookings: Iterable[ExistingBooking],
        now: datetime,
        tz: Optional[tzinfo] = None
    ) -> BookingPayload:
        """
        Turn a booking request into a priced booking ready to be stored.

        Runs received -> skill_checked -> type_checked -> slot_confirmed -> priced.
        Any failure ends the request; nothing partial is returned.
        """
        stage = ValidationStage.RECEIVED
        tz = BookingValidator.resolve_timezone(request, tz)

        try:
            skill = BookingValidator.validate_skill(skill)
            stage = ValidationStage.SKILL_CHECKED

            BookingValidator.validate_session_type(skill, request.session_type.value)
            stage = ValidationStage.TYPE_CHECKED

            session_start = BookingValidator.validate_slot(
                request, skill.creator_id, windows, existing_bookings, now, tz
            )
            stage = ValidationStage.SLOT_CONFIRMED

            price = PricingEngine.price_session(skill.price, request.duration)
            stage = ValidationStage.PRICED
        except HTTPException as e:
            log_warning("Booking request rejected", {
                "learner_id": request.learner_id,
                "skill_id": request.skill_id,
                "stage": stage.value,
                "code": e.detail.get("code") if isinstance(e.detail, dict) else e.status_code
            })
            raise

        log_event("Booking request validated", {
            "learner_id": request.learner_id,
            "creator_id": skill.creator_id,
            "skill_id": skill.id,
            "session_date": session_start.isoformat(),
            "total_amount": price.total_amount,
            "stage": stage.value
        })

        return BookingPayload(
            learner_id=request.learner_id,
            creator_id=skill.creator_id,
            skill_id=skill.id,
            session_date=session_start,
            duration=request.duration,
            session_type=request.session_type,
            location=request.location,
            notes=request.notes,
            total_amount=price.total_amount,
            platform_fee=price.platform_fee,
            creator_earnings=price.creator_earnings,
            status=BookingStatus.PENDING,
            payment_status=PaymentStatus.PENDING
        )

    @staticmethod
    def validate_status_transition(current: BookingStatus, new: BookingStatus):
        """Validate that a booking may move from its current status to the new one"""
        if new not in STATUS_TRANSITIONS[current]:
            raise InvalidStatusTransitionError(
                f"A {current.value} booking cannot become {new.value}"
            )

    @staticmethod
    def validate_payment_transition(current: PaymentStatus, new: PaymentStatus):
        """Validate that a payment status change is allowed"""
        if new not in PAYMENT_TRANSITIONS[current]:
            raise InvalidStatusTransitionError(
                f"A {current.value} payment cannot become {new.value}"
            )
