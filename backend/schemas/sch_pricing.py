from pydantic import BaseModel
from decimal import Decimal

class PriceQuoteResponse(BaseModel):
    hourly_rate: Decimal
    duration: int
    total_amount: Decimal
    platform_fee: Decimal
    creator_earnings: Decimal
