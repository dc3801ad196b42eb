from azure.cosmos import ContainerProxy
from azure.cosmos.exceptions import CosmosResourceExistsError, CosmosResourceNotFoundError
from backend.models.mod_availability import Slot
from backend.models.mod_booking import (
    Booking, BookingChange, BookingPayload, BookingStatus, ExistingBooking,
    PaymentStatus, SUPPORTED_DURATIONS
)
from backend.schemas.sch_booking import BookingCreate
from backend.services.svc_availability import AvailabilityService
from backend.services.svc_conflicts import SlotRejection
from backend.services.svc_skill import SkillService
from backend.services.svc_slots import SlotService, DEFAULT_SESSION_MINUTES
from backend.validators.val_booking import BookingValidator, SlotUnavailableError
import uuid
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from decimal import Decimal
from typing import List, Optional
from backend.configuration.monitor import log_event, log_exception, log_metric, log_warning, start_span

BOOKING_TYPE = "booking"
SLOT_CLAIM_TYPE = "slot_claim"
# Every UTC offset in use is a multiple of 15 minutes
CLAIM_CELL = timedelta(minutes=15)

class BookingService:
    @staticmethod
    def slot_claim_id(creator_id: str, cell_start: datetime) -> str:
        """Deterministic id of the claim on one 15-minute UTC cell of a creator's calendar"""
        return f"slot:{creator_id}:{cell_start.astimezone(timezone.utc).strftime('%Y%m%dT%H%MZ')}"

    @staticmethod
    def claim_cells(start: datetime, duration: int) -> List[datetime]:
        """
        Cells of the fixed UTC grid covering [start, start+duration).

        The first cell is start floored to the grid and the last one ends at or
        after the session end, so any two overlapping sessions share a cell
        whatever minute they start on.
        """
        start = start.astimezone(timezone.utc)
        end = start + timedelta(minutes=duration)
        step = int(CLAIM_CELL.total_seconds() // 60)
        cell = start.replace(minute=start.minute - start.minute % step, second=0, microsecond=0)
        cells = []
        while cell < end:
            cells.append(cell)
            cell += CLAIM_CELL
        return cells

    @staticmethod
    def _serialize_change(change: BookingChange) -> dict:
        return {
            "timestamp": change.timestamp.isoformat(),
            "change_type": change.change_type,
            "previous_value": change.previous_value,
            "new_value": change.new_value
        }

    @staticmethod
    def _to_document(booking: Booking) -> dict:
        """Convert a booking to its storage format"""
        return {
            "id": booking.id,
            "type": BOOKING_TYPE,
            "learner_id": booking.learner_id,
            "creator_id": booking.creator_id,
            "skill_id": booking.skill_id,
            "session_date": booking.session_date.astimezone(timezone.utc).isoformat(),
            "duration": booking.duration,
            "session_type": booking.session_type.value,
            "location": booking.location,
            "notes": booking.notes,
            "total_amount": str(booking.total_amount),
            "platform_fee": str(booking.platform_fee),
            "creator_earnings": str(booking.creator_earnings),
            "status": booking.status.value,
            "payment_status": booking.payment_status.value,
            "payment_intent_id": booking.payment_intent_id,
            "slot_claims": list(booking.slot_claims),
            "changes": [BookingService._serialize_change(c) for c in booking.changes],
            "created_at": booking.created_at.isoformat(),
            "updated_at": booking.updated_at.isoformat()
        }

    @staticmethod
    def _convert_to_model(item: dict) -> Booking:
        """Convert a document from storage format to model format"""
        changes = []
        for change in item.get("changes", []):
            changes.append(BookingChange(
                timestamp=datetime.fromisoformat(change["timestamp"]),
                change_type=change["change_type"],
                previous_value=change.get("previous_value"),
                new_value=change.get("new_value")
            ))

        return Booking(
            id=item["id"],
            learner_id=item["learner_id"],
            creator_id=item["creator_id"],
            skill_id=str(item["skill_id"]),
            session_date=datetime.fromisoformat(item["session_date"]),
            duration=item["duration"],
            session_type=item["session_type"],
            location=item.get("location"),
            notes=item.get("notes"),
            total_amount=Decimal(item["total_amount"]),
            platform_fee=Decimal(item["platform_fee"]),
            creator_earnings=Decimal(item["creator_earnings"]),
            status=item.get("status", BookingStatus.PENDING.value),
            payment_status=item.get("payment_status", PaymentStatus.PENDING.value),
            payment_intent_id=item.get("payment_intent_id"),
            slot_claims=item.get("slot_claims", []),
            changes=changes,
            created_at=datetime.fromisoformat(item["created_at"]),
            updated_at=datetime.fromisoformat(item["updated_at"])
        )

    @staticmethod
    def _query_bookings(db: ContainerProxy, where: str, parameters: list, order: str = "ASC") -> List[Booking]:
        query = f'SELECT * FROM c WHERE c.type = "{BOOKING_TYPE}" AND {where} ORDER BY c.session_date {order}'
        items = db.query_items(query=query, parameters=parameters, enable_cross_partition_query=True)
        return [BookingService._convert_to_model(item) for item in items]

    @staticmethod
    def _release_claims(db: ContainerProxy, claim_ids: List[str]):
        for claim_id in claim_ids:
            try:
                db.delete_item(item=claim_id, partition_key=claim_id)
            except CosmosResourceNotFoundError:
                log_event("Slot claim already released", {"claim_id": claim_id})

    @staticmethod
    def _claim_slots(db: ContainerProxy, booking_id: str, payload: BookingPayload) -> List[str]:
        """
        Claim every grid cell the session touches.

        Claim ids are unique per creator and cell, so the storage layer rejects
        a second claim on the same cell; that is what prevents double-booking
        when two requests pass validation at the same time.
        """
        claimed = []
        for cell_start in BookingService.claim_cells(payload.session_date, payload.duration):
            claim_id = BookingService.slot_claim_id(payload.creator_id, cell_start)
            try:
                db.create_item(body={
                    "id": claim_id,
                    "type": SLOT_CLAIM_TYPE,
                    "creator_id": payload.creator_id,
                    "booking_id": booking_id,
                    "slot_start": cell_start.astimezone(timezone.utc).isoformat()
                })
            except CosmosResourceExistsError:
                BookingService._release_claims(db, claimed)
                log_warning("Booking slot rejected", {
                    "creator_id": payload.creator_id,
                    "learner_id": payload.learner_id,
                    "session_date": payload.session_date.isoformat(),
                    "reason": SlotRejection.CLAIM_CONFLICT.value
                })
                raise SlotUnavailableError()
            claimed.append(claim_id)
        return claimed

    @staticmethod
    def get_creator_bookings_for_date(
        db: ContainerProxy,
        creator_id: str,
        target_date: date,
        tz: tzinfo
    ) -> List[ExistingBooking]:
        """Bookings of a creator that may overlap target_date in the given timezone"""
        try:
            with start_span("get_creator_bookings_for_date", attributes={
                "creator_id": creator_id,
                "date": target_date.isoformat()
            }):
                day_start = datetime.combine(target_date, time(0), tzinfo=tz)
                day_end = datetime.combine(target_date + timedelta(days=1), time(0), tzinfo=tz)
                # A session that started late the previous day can still run into this one
                range_start = day_start - timedelta(minutes=max(SUPPORTED_DURATIONS))

                bookings = BookingService._query_bookings(
                    db,
                    "c.creator_id = @creator_id AND c.session_date >= @start AND c.session_date < @end",
                    [
                        {"name": "@creator_id", "value": creator_id},
                        {"name": "@start", "value": range_start.astimezone(timezone.utc).isoformat()},
                        {"name": "@end", "value": day_end.astimezone(timezone.utc).isoformat()}
                    ]
                )
                return [
                    ExistingBooking(session_date=b.session_date, duration=b.duration, status=b.status)
                    for b in bookings
                ]
        except Exception as e:
            log_exception(e, {
                "operation": "get_creator_bookings_for_date",
                "creator_id": creator_id,
                "date": target_date.isoformat()
            })
            raise

    @staticmethod
    def get_available_slots(
        bookings_db: ContainerProxy,
        availability_db: ContainerProxy,
        creator_id: str,
        target_date: date,
        now: datetime,
        tz: tzinfo,
        duration_minutes: int = DEFAULT_SESSION_MINUTES
    ) -> List[Slot]:
        """Bookable slots of a creator on target_date, read from current storage"""
        with start_span("get_available_slots", attributes={
            "creator_id": creator_id,
            "date": target_date.isoformat()
        }):
            windows = AvailabilityService.get_creator_windows(availability_db, creator_id)
            existing = BookingService.get_creator_bookings_for_date(bookings_db, creator_id, target_date, tz)
            slots = SlotService.generate_available_slots(
                windows, target_date, existing, now, tz, duration_minutes
            )
            log_metric("available_slots", len(slots), {
                "creator_id": creator_id,
                "date": target_date.isoformat()
            })
            return slots

    @staticmethod
    def create_booking(
        bookings_db: ContainerProxy,
        availability_db: ContainerProxy,
        skills_db: ContainerProxy,
        booking: BookingCreate,
        now: Optional[datetime] = None,
        tz: Optional[tzinfo] = None
    ) -> Booking:
        """
        Validate, price and store a booking request.

        Availability and the day's bookings are re-read here rather than taken
        from an earlier slot listing.
        """
        try:
            with start_span("create_booking", attributes={
                "learner_id": booking.learner_id,
                "skill_id": booking.skill_id
            }):
                log_event("Create booking started", {
                    "learner_id": booking.learner_id,
                    "skill_id": booking.skill_id,
                    "session_date": booking.session_date.isoformat(),
                    "start_time": booking.start_time.strftime("%H:%M"),
                    "duration": booking.duration
                })

                current_time = now or datetime.now(timezone.utc)
                tz = BookingValidator.resolve_timezone(booking, tz)

                skill = SkillService.get_skill(skills_db, booking.skill_id)
                windows = []
                existing = []
                if skill is not None:
                    windows = AvailabilityService.get_creator_windows(availability_db, skill.creator_id)
                    existing = BookingService.get_creator_bookings_for_date(
                        bookings_db, skill.creator_id, booking.session_date, tz
                    )

                payload = BookingValidator.validate_and_price_booking(
                    booking, skill, windows, existing, current_time, tz
                )

                booking_id = str(uuid.uuid4())
                claims = BookingService._claim_slots(bookings_db, booking_id, payload)

                new_booking = Booking(
                    **payload.model_dump(),
                    id=booking_id,
                    slot_claims=claims,
                    changes=[],
                    created_at=current_time,
                    updated_at=current_time
                )
                booking_dict = BookingService._to_document(new_booking)
                try:
                    bookings_db.create_item(body=booking_dict)
                except Exception:
                    BookingService._release_claims(bookings_db, claims)
                    raise

                log_event("Booking created successfully", {
                    "booking_id": booking_id,
                    "learner_id": new_booking.learner_id,
                    "creator_id": new_booking.creator_id,
                    "total_amount": new_booking.total_amount
                })

                return new_booking
        except Exception as e:
            log_exception(e, {
                "operation": "create_booking",
                "learner_id": booking.learner_id,
                "skill_id": booking.skill_id
            })
            raise

    @staticmethod
    def get_booking(db: ContainerProxy, booking_id: str) -> Optional[Booking]:
        try:
            with start_span("get_booking", attributes={"booking_id": booking_id}):
                log_event("Retrieving booking", {"booking_id": booking_id})

                bookings = BookingService._query_bookings(
                    db, "c.id = @booking_id", [{"name": "@booking_id", "value": booking_id}]
                )
                if bookings:
                    return bookings[0]

                log_event("Booking not found", {"booking_id": booking_id})
                return None
        except Exception as e:
            log_exception(e, {"operation": "get_booking", "booking_id": booking_id})
            raise

    @staticmethod
    def get_learner_bookings(db: ContainerProxy, learner_id: str) -> List[Booking]:
        """Get all bookings made by a learner, most recent session first"""
        try:
            with start_span("get_learner_bookings", attributes={"learner_id": learner_id}):
                bookings = BookingService._query_bookings(
                    db, "c.learner_id = @learner_id",
                    [{"name": "@learner_id", "value": learner_id}],
                    order="DESC"
                )
                log_event("Learner bookings retrieved", {"learner_id": learner_id, "count": len(bookings)})
                return bookings
        except Exception as e:
            log_exception(e, {"operation": "get_learner_bookings", "learner_id": learner_id})
            raise

    @staticmethod
    def get_creator_bookings(db: ContainerProxy, creator_id: str) -> List[Booking]:
        """Get all bookings received by a creator, most recent session first"""
        try:
            with start_span("get_creator_bookings", attributes={"creator_id": creator_id}):
                bookings = BookingService._query_bookings(
                    db, "c.creator_id = @creator_id",
                    [{"name": "@creator_id", "value": creator_id}],
                    order="DESC"
                )
                log_event("Creator bookings retrieved", {"creator_id": creator_id, "count": len(bookings)})
                return bookings
        except Exception as e:
            log_exception(e, {"operation": "get_creator_bookings", "creator_id": creator_id})
            raise

    @staticmethod
    def update_booking_status(
        db: ContainerProxy,
        booking_id: str,
        status: BookingStatus,
        now: Optional[datetime] = None,
        change_type: str = "status"
    ) -> Optional[Booking]:
        try:
            with start_span("update_booking_status", attributes={"booking_id": booking_id, "status": status.value}):
                log_event("Update booking status started", {"booking_id": booking_id, "status": status.value})

                existing_booking = BookingService.get_booking(db, booking_id)
                if existing_booking is None:
                    log_event("Booking not found for status update", {"booking_id": booking_id})
                    return None

                if existing_booking.status == status:
                    log_event("No changes detected for booking status", {"booking_id": booking_id})
                    return existing_booking

                BookingValidator.validate_status_transition(existing_booking.status, status)

                current_time = now or datetime.now(timezone.utc)
                existing_booking.changes.append(BookingChange(
                    timestamp=current_time,
                    change_type=change_type,
                    previous_value=existing_booking.status.value,
                    new_value=status.value
                ))
                existing_booking.status = status
                existing_booking.updated_at = current_time

                released = []
                if status == BookingStatus.CANCELLED:
                    released = existing_booking.slot_claims
                    existing_booking.slot_claims = []

                db.upsert_item(body=BookingService._to_document(existing_booking))
                # Claims go only after the booking no longer references them
                BookingService._release_claims(db, released)

                log_event("Booking status updated", {
                    "booking_id": booking_id,
                    "status": status.value,
                    "released_claims": len(released)
                })
                return existing_booking
        except Exception as e:
            log_exception(e, {"operation": "update_booking_status", "booking_id": booking_id})
            raise

    @staticmethod
    def cancel_booking(db: ContainerProxy, booking_id: str, now: Optional[datetime] = None) -> Optional[Booking]:
        """Cancel a booking and free its time slot"""
        return BookingService.update_booking_status(
            db, booking_id, BookingStatus.CANCELLED, now=now, change_type="cancellation"
        )

    @staticmethod
    def update_payment_status(
        db: ContainerProxy,
        booking_id: str,
        payment_status: PaymentStatus,
        payment_intent_id: Optional[str] = None,
        now: Optional[datetime] = None
    ) -> Optional[Booking]:
        """Record a payment outcome reported by the payment provider"""
        try:
            with start_span("update_payment_status", attributes={"booking_id": booking_id}):
                existing_booking = BookingService.get_booking(db, booking_id)
                if existing_booking is None:
                    log_event("Booking not found for payment update", {"booking_id": booking_id})
                    return None

                if existing_booking.payment_status == payment_status and not payment_intent_id:
                    return existing_booking

                if existing_booking.payment_status != payment_status:
                    BookingValidator.validate_payment_transition(existing_booking.payment_status, payment_status)

                current_time = now or datetime.now(timezone.utc)
                existing_booking.changes.append(BookingChange(
                    timestamp=current_time,
                    change_type="payment",
                    previous_value=existing_booking.payment_status.value,
                    new_value=payment_status.value
                ))
                existing_booking.payment_status = payment_status
                if payment_intent_id:
                    existing_booking.payment_intent_id = payment_intent_id
                existing_booking.updated_at = current_time

                db.upsert_item(body=BookingService._to_document(existing_booking))

                log_event("Booking payment updated", {
                    "booking_id": booking_id,
                    "payment_status": payment_status.value
                })
                return existing_booking
        except Exception as e:
            log_exception(e, {"operation": "update_payment_status", "booking_id": booking_id})
            raise
