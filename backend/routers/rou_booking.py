from fastapi import APIRouter, HTTPException, Depends
from azure.cosmos import ContainerProxy
from backend.schemas.sch_booking import (
    BookingCreate, BookingStatusUpdate, BookingPaymentUpdate, BookingResponse
)
from backend.services.svc_booking import BookingService
from backend.configuration.database import (
    get_bookings_container, get_availabilities_container, get_skills_container
)
from backend.dependencies.dep_scheduling import get_clock
from typing import List
from datetime import datetime

router = APIRouter(
    prefix="/bookings",
    tags=["Bookings"],
    responses={404: {"description": "Not found"}},
)

@router.post('/', response_model=BookingResponse, status_code=201)
def create_booking(
    booking: BookingCreate,
    db: ContainerProxy = Depends(get_bookings_container),
    availability_db: ContainerProxy = Depends(get_availabilities_container),
    skills_db: ContainerProxy = Depends(get_skills_container),
    now: datetime = Depends(get_clock)
):
    """
    Book a session of a skill.

    - The start time must be one of the creator's currently bookable slots
    - Prices the session from the skill's hourly rate (25% platform fee)
    - Returns the pending booking; payment is collected separately
    - A 409 slot_unavailable means the slot list should be fetched again
    """
    return BookingService.create_booking(db, availability_db, skills_db, booking, now)

@router.get('/{booking_id}', response_model=BookingResponse)
def get_booking(
    booking_id: str,
    db: ContainerProxy = Depends(get_bookings_container)
):
    """
    Get details of a specific booking by its ID.
    """
    booking = BookingService.get_booking(db, booking_id)
    if not booking:
        raise HTTPException(status_code=404, detail='Booking not found')
    return booking

@router.get('/learners/{learner_id}', response_model=List[BookingResponse])
def get_learner_bookings(
    learner_id: str,
    db: ContainerProxy = Depends(get_bookings_container)
):
    """
    Get all bookings made by a learner, most recent session first.
    """
    return BookingService.get_learner_bookings(db, learner_id)

@router.get('/creators/{creator_id}', response_model=List[BookingResponse])
def get_creator_bookings(
    creator_id: str,
    db: ContainerProxy = Depends(get_bookings_container)
):
    """
    Get all bookings received by a creator, most recent session first.
    """
    return BookingService.get_creator_bookings(db, creator_id)

@router.patch('/{booking_id}/status', response_model=BookingResponse)
def update_booking_status(
    booking_id: str,
    update: BookingStatusUpdate,
    db: ContainerProxy = Depends(get_bookings_container),
    now: datetime = Depends(get_clock)
):
    """
    Move a booking to a new status.

    - pending -> confirmed | cancelled
    - confirmed -> in-progress | cancelled
    - in-progress -> completed
    - completed | cancelled -> refunded
    - Cancelling frees the booked time slot
    """
    booking = BookingService.update_booking_status(db, booking_id, update.status, now)
    if not booking:
        raise HTTPException(status_code=404, detail='Booking not found')
    return booking

@router.patch('/{booking_id}/payment', response_model=BookingResponse)
def update_payment_status(
    booking_id: str,
    update: BookingPaymentUpdate,
    db: ContainerProxy = Depends(get_bookings_container),
    now: datetime = Depends(get_clock)
):
    """
    Record the payment outcome of a booking, as reported by the payment provider.
    """
    booking = BookingService.update_payment_status(
        db, booking_id, update.payment_status, update.payment_intent_id, now
    )
    if not booking:
        raise HTTPException(status_code=404, detail='Booking not found')
    return booking

@router.post('/{booking_id}/cancel', response_model=BookingResponse)
def cancel_booking(
    booking_id: str,
    db: ContainerProxy = Depends(get_bookings_container),
    now: datetime = Depends(get_clock)
):
    """
    Cancel a booking.

    - Changes booking status to 'cancelled' and frees its time slot
    - Records the cancellation in the booking history
    """
    booking = BookingService.cancel_booking(db, booking_id, now)
    if not booking:
        raise HTTPException(status_code=404, detail='Booking not found')
    return booking
