from fastapi import APIRouter, Depends, HTTPException, Query
from azure.cosmos import ContainerProxy
from decimal import Decimal
from typing import Optional
from backend.schemas.sch_pricing import PriceQuoteResponse
from backend.services.svc_pricing import PricingEngine
from backend.services.svc_skill import SkillService
from backend.configuration.database import get_skills_container
from backend.dependencies.dep_scheduling import get_duration

router = APIRouter(
    prefix="/pricing",
    tags=["Pricing"],
    responses={404: {"description": "Not found"}},
)

def _quote(hourly_rate, duration: int) -> dict:
    price = PricingEngine.price_session(hourly_rate, duration)
    return {
        "hourly_rate": hourly_rate,
        "duration": duration,
        "total_amount": price.total_amount,
        "platform_fee": price.platform_fee,
        "creator_earnings": price.creator_earnings
    }

@router.get('/quote', response_model=PriceQuoteResponse)
def price_session(
    hourly_rate: Decimal = Query(..., gt=0, description="Hourly rate of the skill"),
    duration: int = Depends(get_duration)
):
    """
    Price a session from an hourly rate.

    - total = rate x duration / 60, rounded half-up to cents
    - platform fee is 25% of the total, the creator keeps the rest
    """
    return _quote(hourly_rate, duration)

@router.get('/skills/{skill_id}', response_model=PriceQuoteResponse)
def price_skill_session(
    skill_id: str,
    duration: Optional[int] = Query(None, description="Session length in minutes, defaults to the skill's"),
    db: ContainerProxy = Depends(get_skills_container)
):
    """
    Price a session of a listed skill at its current hourly rate.
    """
    skill = SkillService.get_skill(db, skill_id)
    if not skill:
        raise HTTPException(status_code=404, detail='Skill not found')
    if duration is not None:
        duration = get_duration(duration)
    return _quote(skill.price, duration or skill.duration)
