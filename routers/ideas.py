from fastapi import APIRouter, Depends, Request
from typing import Optional
from access import get_current_identity, require_facilitator
from dependencies import get_idea_service
from schemas.auth import Identity, MessageResponse
from schemas.ideas import (
    ActiveIdea, Idea, CreateIdeaRequest, MergeIdeasRequest, MergeIdeasResponse,
    AssignIdeaRequest, AssignIdeaResponse,
)
from services.ideas import IdeaService, resolve_voter_key
from logging_config import get_logger

logger = get_logger(__name__)

ideas_router = APIRouter(prefix="/ideas", tags=["ideas"])


@ideas_router.get("", response_model=list[Idea])
def list_ideas(ideas: IdeaService = Depends(get_idea_service)):
    return ideas.list_ideas()


@ideas_router.post("", response_model=ActiveIdea, status_code=201)
def create_idea(
    body: CreateIdeaRequest,
    identity: Optional[Identity] = Depends(get_current_identity),
    ideas: IdeaService = Depends(get_idea_service),
):
    return ideas.submit(body.title, body.description, identity)


# Registered before /{idea_id} routes so "merge" is never taken for an id
@ideas_router.post("/merge", response_model=MergeIdeasResponse)
def merge_ideas(
    body: MergeIdeasRequest,
    identity: Identity = Depends(require_facilitator),
    ideas: IdeaService = Depends(get_idea_service),
):
    logger.info(f"Merge request from {identity.email} for {body.idea_ids}")
    merged = ideas.merge(body.idea_ids, body.new_title, body.new_description, identity)
    return MergeIdeasResponse(merged_idea=merged)


@ideas_router.get("/{idea_id}", response_model=Idea)
def get_idea(idea_id: str, ideas: IdeaService = Depends(get_idea_service)):
    return ideas.get(idea_id)


@ideas_router.post("/{idea_id}/vote", response_model=ActiveIdea)
def vote(
    idea_id: str,
    request: Request,
    identity: Optional[Identity] = Depends(get_current_identity),
    ideas: IdeaService = Depends(get_idea_service),
):
    voter_key = resolve_voter_key(
        identity,
        forwarded_for=request.headers.get("X-Forwarded-For"),
        client_host=request.client.host if request.client else None,
    )
    return ideas.vote(idea_id, voter_key)


@ideas_router.delete("/{idea_id}", response_model=MessageResponse)
def delete_idea(
    idea_id: str,
    identity: Identity = Depends(require_facilitator),
    ideas: IdeaService = Depends(get_idea_service),
):
    logger.info(f"Delete idea {idea_id} requested by {identity.email}")
    ideas.remove(idea_id)
    return MessageResponse(message="Idea deleted")


@ideas_router.post("/{idea_id}/assign", response_model=AssignIdeaResponse)
def assign_idea(
    idea_id: str,
    body: AssignIdeaRequest,
    identity: Identity = Depends(require_facilitator),
    ideas: IdeaService = Depends(get_idea_service),
):
    idea = ideas.assign(idea_id, body.slot_id, body.room_id)
    return AssignIdeaResponse(idea=idea)
