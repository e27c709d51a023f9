from pydantic import BaseModel, Field
from typing import Optional

from schemas.ideas import ActiveIdea


class ScheduledSession(ActiveIdea):
    room_name: Optional[str] = None

class ScheduleSlot(BaseModel):
    id: str
    start_time: str
    duration_minutes: int
    room_id: Optional[str] = None
    room_name: Optional[str] = None
    sessions: list[ScheduledSession] = Field(default_factory=list)
