from azure.cosmos import ContainerProxy
from decimal import Decimal
from typing import Optional
from backend.models.mod_skill import Skill
from backend.configuration.monitor import log_event, log_exception, start_span

class SkillService:
    """Read-only access to the skills catalogue, which is owned by the listing flow."""

    @staticmethod
    def _convert_to_model(item: dict) -> Skill:
        return Skill(
            id=str(item["id"]),
            creator_id=item["creator_id"],
            title=item.get("title"),
            price=Decimal(str(item["price"])),
            duration=item.get("duration", 60),
            session_type=item.get("session_type", "both"),
            location=item.get("location"),
            is_approved=item.get("is_approved", False),
            is_active=item.get("is_active", True)
        )

    @staticmethod
    def get_skill(db: ContainerProxy, skill_id: str) -> Optional[Skill]:
        try:
            with start_span("get_skill", attributes={"skill_id": skill_id}):
                query = "SELECT * FROM c WHERE c.id = @skill_id"
                items = list(db.query_items(
                    query=query,
                    parameters=[{"name": "@skill_id", "value": skill_id}],
                    enable_cross_partition_query=True
                ))
                if items:
                    return SkillService._convert_to_model(items[0])

                log_event("Skill not found", {"skill_id": skill_id})
                return None
        except Exception as e:
            log_exception(e, {"operation": "get_skill", "skill_id": skill_id})
            raise
