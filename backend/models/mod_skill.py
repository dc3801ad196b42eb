from pydantic import BaseModel
from decimal import Decimal
from enum import Enum
from typing import Optional

class SkillSessionType(str, Enum):
    VIRTUAL = "virtual"
    IN_PERSON = "in-person"
    BOTH = "both"

class Skill(BaseModel):
    id: str
    creator_id: str
    title: Optional[str] = None
    price: Decimal  # hourly rate
    duration: int = 60  # default session length in minutes
    session_type: SkillSessionType = SkillSessionType.BOTH
    location: Optional[str] = None
    is_approved: bool = False
    is_active: bool = True

    def supports(self, session_type: str) -> bool:
        return self.session_type == SkillSessionType.BOTH or self.session_type.value == session_type

    class Config:
        from_attributes = True
