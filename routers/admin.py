from fastapi import APIRouter, Depends
from access import require_admin
from dependencies import get_auth_service, get_idea_service, get_user_service, get_venue_service, get_public_base_url
from mailer import MailgunMailer, get_mailer
from schemas.auth import Identity, MessageResponse
from schemas.ideas import ResetResponse
from schemas.users import InviteUserRequest, InviteUserResponse, UserResponse
from services.auth import AuthService
from services.ideas import IdeaService
from services.users import UserService
from services.venue import VenueService
from logging_config import get_logger

logger = get_logger(__name__)

admin_router = APIRouter(prefix="/admin", tags=["admin"])


@admin_router.get("/users", response_model=list[UserResponse])
def list_users(
    identity: Identity = Depends(require_admin),
    users: UserService = Depends(get_user_service),
):
    return users.list_users()


@admin_router.post("/users", response_model=InviteUserResponse, status_code=201)
async def invite_user(
    body: InviteUserRequest,
    identity: Identity = Depends(require_admin),
    auth: AuthService = Depends(get_auth_service),
    mailer: MailgunMailer = Depends(get_mailer),
    base_url: str = Depends(get_public_base_url),
):
    # A failed invitation email surfaces as 502 USER_CREATED_EMAIL_FAILED, the user row stays
    user = await auth.invite_user(body.email, body.role, identity, base_url, mailer)
    return InviteUserResponse(
        message=f"User {user.email} created with role {user.role} and an invitation has been sent.",
        user=UserResponse.model_validate(user),
    )


@admin_router.delete("/users/{user_id}", response_model=MessageResponse)
def delete_user(
    user_id: str,
    identity: Identity = Depends(require_admin),
    users: UserService = Depends(get_user_service),
):
    users.delete_user(user_id, identity)
    return MessageResponse(message="User deleted successfully.")


@admin_router.post("/reset-votes", response_model=ResetResponse)
def reset_votes(
    identity: Identity = Depends(require_admin),
    ideas: IdeaService = Depends(get_idea_service),
):
    logger.warning(f"Vote reset requested by {identity.email}")
    return ResetResponse(ideas=ideas.reset_votes())


@admin_router.post("/reset", response_model=ResetResponse)
def reset_all(
    identity: Identity = Depends(require_admin),
    ideas: IdeaService = Depends(get_idea_service),
    venue: VenueService = Depends(get_venue_service),
):
    # Users, tokens and sessions survive a full reset
    logger.warning(f"Full reset requested by {identity.email}")
    deleted_ideas = ideas.delete_all()
    slots, rooms = venue.delete_all()
    return ResetResponse(ideas=deleted_ideas, slots=slots, rooms=rooms)
