from pydantic import BaseModel, ConfigDict
from datetime import datetime
from typing import Optional


class CreateRoomRequest(BaseModel):
    name: Optional[str] = None

class RoomResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    created_at: Optional[datetime] = None
