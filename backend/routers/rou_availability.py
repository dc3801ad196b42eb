from fastapi import APIRouter, Depends, Query
from azure.cosmos import ContainerProxy
from backend.schemas.sch_availability import AvailabilitySet, AvailabilityResponse, SlotListResponse
from backend.services.svc_availability import AvailabilityService
from backend.services.svc_booking import BookingService
from backend.configuration.database import get_availabilities_container, get_bookings_container
from backend.dependencies.dep_scheduling import get_clock, get_duration, get_timezone
from datetime import date, datetime, tzinfo

router = APIRouter(
    prefix="/creators",
    tags=["Availabilities"],
    responses={404: {"description": "Not found"}},
)

@router.get("/{creator_id}/availability", response_model=AvailabilityResponse)
def get_creator_availability(
    creator_id: str,
    db: ContainerProxy = Depends(get_availabilities_container)
):
    """
    Get the weekly availability windows of a creator.

    - Returns an empty schedule when the creator has not set one
    - Times are HH:MM wall-clock values, days are 0 (Sunday) to 6 (Saturday)
    """
    availability = AvailabilityService.get_creator_availability(db, creator_id)
    if availability is None:
        return {"creator_id": creator_id, "windows": [], "updated_at": None}
    return AvailabilityService.to_response(availability)

@router.put("/{creator_id}/availability", response_model=AvailabilityResponse)
def set_creator_availability(
    creator_id: str,
    availability: AvailabilitySet,
    db: ContainerProxy = Depends(get_availabilities_container),
    now: datetime = Depends(get_clock)
):
    """
    Replace the weekly availability of a creator.

    - Every previous window is replaced by the submitted set in one write
    - Existing bookings are not affected by the change
    """
    updated = AvailabilityService.set_creator_availability(db, creator_id, availability, now)
    return AvailabilityService.to_response(updated)

@router.get("/{creator_id}/slots", response_model=SlotListResponse)
def get_available_slots(
    creator_id: str,
    session_date: date = Query(..., alias="date", description="Date to list slots for (YYYY-MM-DD)"),
    duration: int = Depends(get_duration),
    bookings_db: ContainerProxy = Depends(get_bookings_container),
    availability_db: ContainerProxy = Depends(get_availabilities_container),
    now: datetime = Depends(get_clock),
    tz: tzinfo = Depends(get_timezone)
):
    """
    List the bookable start times of a creator on a date.

    - Slots are 30 minutes apart and never start outside an availability window
    - Past dates return no slots; today's slots start at least one hour from now
    - Slots that would overlap an existing booking are left out
    """
    slots = BookingService.get_available_slots(
        bookings_db, availability_db, creator_id, session_date, now, tz, duration
    )
    return {
        "creator_id": creator_id,
        "session_date": session_date,
        "timezone": str(tz),
        "slots": [
            {
                "session_date": slot.session_date,
                "start_time": slot.start_time.strftime("%H:%M"),
                "duration_minutes": slot.duration_minutes
            }
            for slot in slots
        ]
    }
