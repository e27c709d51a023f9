from pydantic import BaseModel, ConfigDict
from typing import Optional


class InviteUserRequest(BaseModel):
    email: Optional[str] = None
    role: Optional[str] = None

class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    email: str
    role: str

class InviteUserResponse(BaseModel):
    success: bool = True
    message: str
    user: UserResponse
