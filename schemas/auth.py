from pydantic import BaseModel
from typing import Literal, Optional


class Identity(BaseModel):
    user_id: Optional[str] = None
    email: str
    role: Literal["admin", "facilitator"]

class LoginRequest(BaseModel):
    email: Optional[str] = None

class MessageResponse(BaseModel):
    success: bool = True
    message: Optional[str] = None

class MeResponse(BaseModel):
    user: Optional[Identity] = None
