from fastapi import HTTPException
from typing import Iterable

class AvailabilityValidationError(HTTPException):
    def __init__(self, detail: str):
        super().__init__(status_code=400, detail={"code": "invalid_availability", "message": detail})

class AvailabilityValidator:
    @staticmethod
    def validate_window(window):
        """Validate a single recurring window"""
        if not (0 <= window.day_of_week <= 6):
            raise AvailabilityValidationError(
                "day_of_week must be between 0 (Sunday) and 6 (Saturday)"
            )
        if window.start_time >= window.end_time:
            raise AvailabilityValidationError(
                "Availability windows must end after they start"
            )
        if window.start_time.second or window.end_time.second:
            raise AvailabilityValidationError(
                "Availability times are expressed in hours and minutes only"
            )

    @staticmethod
    def validate_set_availability(creator_id: str, windows: Iterable):
        """Validate all rules for replacing a creator's weekly schedule"""
        if not creator_id:
            raise AvailabilityValidationError("A creator is required to set availability")
        # Overlapping windows are allowed; slot generation merges them
        for window in windows:
            AvailabilityValidator.validate_window(window)
