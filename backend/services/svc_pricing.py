from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from fastapi import HTTPException
from backend.models.mod_booking import SUPPORTED_DURATIONS
from backend.models.mod_pricing import PriceBreakdown

CENT = Decimal("0.01")
PLATFORM_FEE_RATE = Decimal("0.25")

class PricingError(HTTPException):
    """Pricing inputs come from stored skill data, so a failure here is a server error."""
    code = "pricing_error"

    def __init__(self, message: str):
        super().__init__(status_code=500, detail={"code": self.code, "message": message})

class InvalidDurationError(PricingError):
    code = "invalid_duration"

class InvalidRateError(PricingError):
    code = "invalid_rate"

class PricingEngine:
    @staticmethod
    def _round(value: Decimal) -> Decimal:
        return value.quantize(CENT, rounding=ROUND_HALF_UP)

    @staticmethod
    def validate_duration(duration_minutes) -> int:
        if isinstance(duration_minutes, bool) or duration_minutes not in SUPPORTED_DURATIONS:
            raise InvalidDurationError(
                f"Session duration must be one of {', '.join(str(d) for d in SUPPORTED_DURATIONS)} minutes"
            )
        return int(duration_minutes)

    @staticmethod
    def validate_rate(hourly_rate) -> Decimal:
        try:
            rate = Decimal(str(hourly_rate))
        except (InvalidOperation, ValueError):
            raise InvalidRateError(f"Hourly rate '{hourly_rate}' is not a number")
        if not rate.is_finite() or rate <= 0:
            raise InvalidRateError("Hourly rate must be greater than zero")
        return rate

    @staticmethod
    def price_session(hourly_rate, duration_minutes: int) -> PriceBreakdown:
        """
        Price a session from an hourly rate.

        The platform keeps 25% of the total; the creator's share is taken by
        subtraction after rounding so the two parts always add up to the total.
        """
        rate = PricingEngine.validate_rate(hourly_rate)
        duration = PricingEngine.validate_duration(duration_minutes)

        total_amount = PricingEngine._round(rate * Decimal(duration) / Decimal(60))
        platform_fee = PricingEngine._round(total_amount * PLATFORM_FEE_RATE)
        creator_earnings = total_amount - platform_fee

        return PriceBreakdown(
            total_amount=total_amount,
            platform_fee=platform_fee,
            creator_earnings=creator_earnings
        )
