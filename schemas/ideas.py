from pydantic import BaseModel, Field, TypeAdapter
from typing import Annotated, Literal, Optional, Union


class IdeaBase(BaseModel):
    id: str
    title: str
    description: str
    author: str
    votes: int = 0
    voters: list[str] = Field(default_factory=list)
    created_at: str
    slot_id: Optional[str] = None
    room_id: Optional[str] = None
    merged_from: Optional[list[str]] = None
    version: int = 0

class ActiveIdea(IdeaBase):
    status: Literal["active"] = "active"

class MergedIdea(IdeaBase):
    status: Literal["merged"] = "merged"
    merged_into: str

Idea = Annotated[Union[ActiveIdea, MergedIdea], Field(discriminator="status")]
IdeaAdapter = TypeAdapter(Idea)


class CreateIdeaRequest(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None

class MergeIdeasRequest(BaseModel):
    idea_ids: Optional[list[str]] = None
    new_title: Optional[str] = None
    new_description: Optional[str] = None

class MergeIdeasResponse(BaseModel):
    success: bool = True
    merged_idea: ActiveIdea

class AssignIdeaRequest(BaseModel):
    slot_id: Optional[str] = None
    room_id: Optional[str] = None

class AssignIdeaResponse(BaseModel):
    success: bool = True
    idea: Idea

class ResetResponse(BaseModel):
    success: bool = True
    ideas: int
    slots: int = 0
    rooms: int = 0
