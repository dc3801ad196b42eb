from pydantic import BaseModel
from decimal import Decimal

class PriceBreakdown(BaseModel):
    total_amount: Decimal
    platform_fee: Decimal
    creator_earnings: Decimal
