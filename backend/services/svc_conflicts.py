from datetime import date, datetime, time, timedelta, timezone, tzinfo
from enum import Enum
from typing import Iterable, Iterator, List, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError
from backend.models.mod_booking import ExistingBooking

LEAD_TIME = timedelta(minutes=60)

class SlotRejection(str, Enum):
    """Internal reasons a slot cannot be booked. Only ever logged."""
    OUTSIDE_AVAILABILITY = "outside_availability"
    PAST_DATE = "past_date"
    LEAD_TIME = "lead_time"
    NONEXISTENT_TIME = "nonexistent_time"
    CONFLICT = "conflict"
    CLAIM_CONFLICT = "claim_conflict"

def load_timezone(name: str) -> tzinfo:
    """Resolve an IANA zone name, raising ValueError for unknown zones."""
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ValueError(f"Unknown timezone '{name}'") from e

def as_aware(value: datetime) -> datetime:
    """Naive timestamps are treated as UTC"""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value

class ConflictFilter:
    @staticmethod
    def slot_start(target_date: date, start_time: time, tz: tzinfo) -> datetime:
        return datetime.combine(target_date, start_time, tzinfo=tz)

    @staticmethod
    def exists_locally(start: datetime) -> bool:
        """False for wall-clock times skipped by a daylight saving jump"""
        round_trip = start.astimezone(timezone.utc).astimezone(start.tzinfo)
        return round_trip.replace(tzinfo=None) == start.replace(tzinfo=None)

    @staticmethod
    def local_today(now: datetime, tz: tzinfo) -> date:
        return as_aware(now).astimezone(tz).date()

    @staticmethod
    def overlaps(start: datetime, end: datetime, booking: ExistingBooking) -> bool:
        booking_start = as_aware(booking.session_date)
        booking_end = booking_start + timedelta(minutes=booking.duration)
        return start < booking_end and end > booking_start

    @staticmethod
    def has_conflict(start: datetime, duration_minutes: int, existing_bookings: Iterable[ExistingBooking]) -> bool:
        """True if [start, start+duration) collides with a booking that still holds its slot"""
        end = start + timedelta(minutes=duration_minutes)
        return any(
            booking.holds_slot and ConflictFilter.overlaps(start, end, booking)
            for booking in existing_bookings
        )

    @staticmethod
    def rejection_reason(
        target_date: date,
        start_time: time,
        now: datetime,
        existing_bookings: Iterable[ExistingBooking],
        duration_minutes: int,
        tz: tzinfo
    ) -> Optional[SlotRejection]:
        now = as_aware(now)
        if target_date < ConflictFilter.local_today(now, tz):
            return SlotRejection.PAST_DATE

        start = ConflictFilter.slot_start(target_date, start_time, tz)
        if not ConflictFilter.exists_locally(start):
            return SlotRejection.NONEXISTENT_TIME
        if start < now + LEAD_TIME:
            return SlotRejection.LEAD_TIME

        if ConflictFilter.has_conflict(start, duration_minutes, existing_bookings):
            return SlotRejection.CONFLICT
        return None

    @staticmethod
    def filter_slots(
        slots: Iterable[time],
        target_date: date,
        now: datetime,
        existing_bookings: Iterable[ExistingBooking],
        duration_minutes: int,
        tz: tzinfo
    ) -> Iterator[time]:
        """
        Drop slots that cannot be booked at `now`.

        - every slot of a date before today (in tz) is dropped
        - wall-clock times that do not exist in tz (daylight saving gaps) are dropped
        - slots starting less than an hour after `now` are dropped
        - slots whose [start, start+duration) overlaps a non-cancelled booking are dropped

        Ordering of the remaining slots is preserved.
        """
        now = as_aware(now)
        if target_date < ConflictFilter.local_today(now, tz):
            return iter(())

        bookings: List[ExistingBooking] = [b for b in existing_bookings if b.holds_slot]
        earliest = now + LEAD_TIME

        def remaining():
            for start_time in slots:
                start = ConflictFilter.slot_start(target_date, start_time, tz)
                if not ConflictFilter.exists_locally(start):
                    continue
                if start < earliest:
                    continue
                if ConflictFilter.has_conflict(start, duration_minutes, bookings):
                    continue
                yield start_time

        return remaining()
