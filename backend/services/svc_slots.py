import heapq
from datetime import date, datetime, time, tzinfo
from typing import Iterable, Iterator, List
from backend.models.mod_availability import AvailabilityWindow, Slot, SLOT_MINUTES, day_of_week
from backend.models.mod_booking import ExistingBooking
from backend.services.svc_conflicts import ConflictFilter

DEFAULT_SESSION_MINUTES = 60

class SlotSequence:
    """Lazy view over the bookable start times of one date.

    Every iteration recomputes the slots from the windows it was built with,
    so the sequence can be walked any number of times with identical results.
    """

    def __init__(self, windows: Iterable[AvailabilityWindow], target_date: date):
        self.windows = list(windows)
        self.date = target_date

    def __iter__(self) -> Iterator[time]:
        return SlotGenerator.iter_slots(self.windows, self.date)

    def __contains__(self, start_time: time) -> bool:
        return any(slot == start_time for slot in self)

class SlotGenerator:
    @staticmethod
    def _minutes(value: time) -> int:
        return value.hour * 60 + value.minute

    @staticmethod
    def matching_windows(windows: Iterable[AvailabilityWindow], target_date: date) -> List[AvailabilityWindow]:
        """Enabled windows that recur on the weekday of target_date"""
        weekday = day_of_week(target_date)
        return [w for w in windows if w.is_available and w.day_of_week == weekday]

    @staticmethod
    def iter_slots(windows: Iterable[AvailabilityWindow], target_date: date) -> Iterator[time]:
        """
        Yield slot start times for target_date in ascending order.

        Each window contributes start, start+30, ... for as long as a whole
        30-minute slot still fits before the window's end.
        Start times produced by overlapping windows are yielded once.
        """
        ranges = []
        for window in SlotGenerator.matching_windows(windows, target_date):
            start = SlotGenerator._minutes(window.start_time)
            end = SlotGenerator._minutes(window.end_time)
            ranges.append(range(start, end - SLOT_MINUTES + 1, SLOT_MINUTES))

        previous = None
        for minutes in heapq.merge(*ranges):
            if minutes == previous:
                continue
            previous = minutes
            yield time(minutes // 60, minutes % 60)

    @staticmethod
    def generate_slots(windows: Iterable[AvailabilityWindow], target_date: date) -> SlotSequence:
        return SlotSequence(windows, target_date)

class SlotService:
    @staticmethod
    def generate_available_slots(
        windows: Iterable[AvailabilityWindow],
        target_date: date,
        existing_bookings: Iterable[ExistingBooking],
        now: datetime,
        tz: tzinfo,
        duration_minutes: int = DEFAULT_SESSION_MINUTES
    ) -> List[Slot]:
        """Slots of target_date that can still be booked for duration_minutes."""
        raw = SlotGenerator.generate_slots(windows, target_date)
        available = ConflictFilter.filter_slots(
            raw, target_date, now, existing_bookings, duration_minutes, tz
        )
        return [
            Slot(session_date=target_date, start_time=start, duration_minutes=duration_minutes)
            for start in available
        ]
