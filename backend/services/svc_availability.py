from azure.cosmos import ContainerProxy
from backend.models.mod_availability import AvailabilityWindow, CreatorAvailability
from backend.schemas.sch_availability import AvailabilitySet
from backend.validators.val_availability import AvailabilityValidator
from datetime import datetime, timezone
from typing import List, Optional
from backend.configuration.monitor import log_event, log_exception, start_span

class AvailabilityService:
    """
    Weekly availability, stored as one document per creator.

    The document id is the creator id, so replacing a schedule is a single
    upsert and readers never observe a half-written set of windows.
    """

    @staticmethod
    def _serialize_window(window) -> dict:
        """Convert time objects to HH:MM strings"""
        return {
            "day_of_week": window.day_of_week,
            "start_time": window.start_time.strftime("%H:%M"),
            "end_time": window.end_time.strftime("%H:%M"),
            "is_available": window.is_available
        }

    @staticmethod
    def _deserialize_window(creator_id: str, window_dict: dict) -> AvailabilityWindow:
        """Convert HH:MM strings back to time objects"""
        return AvailabilityWindow(
            creator_id=creator_id,
            day_of_week=window_dict["day_of_week"],
            start_time=datetime.strptime(window_dict["start_time"], "%H:%M").time(),
            end_time=datetime.strptime(window_dict["end_time"], "%H:%M").time(),
            is_available=window_dict.get("is_available", True)
        )

    @staticmethod
    def _convert_to_model(item: dict) -> CreatorAvailability:
        creator_id = item["creator_id"]
        windows = [AvailabilityService._deserialize_window(creator_id, w) for w in item.get("windows", [])]
        # Stored order is not guaranteed, present windows by day then start time
        windows.sort(key=lambda w: (w.day_of_week, w.start_time))
        return CreatorAvailability(
            id=item["id"],
            creator_id=creator_id,
            windows=windows,
            updated_at=datetime.fromisoformat(item["updated_at"]) if item.get("updated_at") else None
        )

    @staticmethod
    def to_response(availability: CreatorAvailability) -> dict:
        return {
            "creator_id": availability.creator_id,
            "windows": [AvailabilityService._serialize_window(w) for w in availability.windows],
            "updated_at": availability.updated_at
        }

    @staticmethod
    def get_creator_availability(db: ContainerProxy, creator_id: str) -> Optional[CreatorAvailability]:
        try:
            with start_span("get_creator_availability", attributes={"creator_id": creator_id}):
                log_event("Retrieving creator availability", {"creator_id": creator_id})

                query = "SELECT * FROM c WHERE c.id = @creator_id"
                items = list(db.query_items(
                    query=query,
                    parameters=[{"name": "@creator_id", "value": creator_id}],
                    enable_cross_partition_query=True
                ))

                if items:
                    return AvailabilityService._convert_to_model(items[0])

                log_event("Creator availability not found", {"creator_id": creator_id})
                return None
        except Exception as e:
            log_exception(e, {"operation": "get_creator_availability", "creator_id": creator_id})
            raise

    @staticmethod
    def get_creator_windows(db: ContainerProxy, creator_id: str) -> List[AvailabilityWindow]:
        """Current windows of a creator, empty when no schedule was ever set"""
        availability = AvailabilityService.get_creator_availability(db, creator_id)
        return availability.windows if availability else []

    @staticmethod
    def set_creator_availability(
        db: ContainerProxy,
        creator_id: str,
        availability: AvailabilitySet,
        now: Optional[datetime] = None
    ) -> CreatorAvailability:
        """Replace every window of the creator's weekly schedule"""
        try:
            with start_span("set_creator_availability", attributes={"creator_id": creator_id}):
                log_event("Set creator availability started", {
                    "creator_id": creator_id,
                    "windows": len(availability.windows)
                })

                AvailabilityValidator.validate_set_availability(creator_id, availability.windows)

                current_time = now or datetime.now(timezone.utc)
                availability_dict = {
                    "id": creator_id,
                    "creator_id": creator_id,
                    "windows": [AvailabilityService._serialize_window(w) for w in availability.windows],
                    "updated_at": current_time.isoformat()
                }

                db.upsert_item(body=availability_dict)

                log_event("Creator availability replaced", {
                    "creator_id": creator_id,
                    "windows": len(availability.windows)
                })

                return AvailabilityService._convert_to_model(availability_dict)
        except Exception as e:
            log_exception(e, {"operation": "set_creator_availability", "creator_id": creator_id})
            raise
