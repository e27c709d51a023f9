from pydantic import BaseModel
from typing import Optional


class CreateSlotRequest(BaseModel):
    start_time: Optional[str] = None
    duration_minutes: Optional[int] = None
    room_id: Optional[str] = None

class UpdateSlotRoomRequest(BaseModel):
    room_id: Optional[str] = None

class SlotResponse(BaseModel):
    id: str
    start_time: str
    duration_minutes: int
    room_id: Optional[str] = None
    room_name: Optional[str] = None
