from fastapi import APIRouter, BackgroundTasks, Depends, Query, Request, Response
from typing import Optional
from access import get_current_identity
from constants import SESSION_COOKIE_NAME, SESSION_COOKIE_SECURE, SESSION_TTL, GENERIC_LOGIN_MESSAGE
from dependencies import get_auth_service, get_public_base_url
from errors import StorageError
from mailer import MailgunMailer, get_mailer
from schemas.auth import Identity, LoginRequest, MessageResponse, MeResponse
from services.auth import AuthService, deliver_login_link, normalize_email, sign_session_id
from logging_config import get_logger

logger = get_logger(__name__)

auth_router = APIRouter(prefix="/auth", tags=["auth"])


@auth_router.post("/login", response_model=MessageResponse)
def request_login(
    login: LoginRequest,
    request: Request,
    background_tasks: BackgroundTasks,
    auth: AuthService = Depends(get_auth_service),
    mailer: MailgunMailer = Depends(get_mailer),
    base_url: str = Depends(get_public_base_url),
):
    # Known and unknown emails get the exact same answer; delivery runs after the response
    client_host = request.client.host if request.client else "unknown"
    logger.info(f"Login request from {client_host}")
    try:
        link = auth.request_login(login.email, base_url)
    except StorageError:
        logger.error("Login link could not be issued, answering with the generic message")
        link = None
    if link:
        background_tasks.add_task(deliver_login_link, mailer, normalize_email(login.email), link)
    return MessageResponse(message=GENERIC_LOGIN_MESSAGE)


@auth_router.get("/verify", response_model=MessageResponse)
def verify_token(
    response: Response,
    token: Optional[str] = Query(None, description="Single-use token from the magic link"),
    auth: AuthService = Depends(get_auth_service),
):
    session_id, identity = auth.verify(token)
    response.set_cookie(
        key=SESSION_COOKIE_NAME,
        value=sign_session_id(session_id),
        max_age=SESSION_TTL,
        path="/",
        httponly=True,
        secure=SESSION_COOKIE_SECURE,
        samesite="lax",
    )
    logger.info(f"Token verified for {identity.email}")
    return MessageResponse()


@auth_router.get("/me", response_model=MeResponse)
def current_user(identity: Optional[Identity] = Depends(get_current_identity)):
    return MeResponse(user=identity)


@auth_router.post("/logout", response_model=MessageResponse)
def logout(
    request: Request,
    response: Response,
    auth: AuthService = Depends(get_auth_service),
):
    auth.logout(request.cookies.get(SESSION_COOKIE_NAME))
    response.delete_cookie(
        key=SESSION_COOKIE_NAME,
        path="/",
        httponly=True,
        secure=SESSION_COOKIE_SECURE,
        samesite="lax",
    )
    return MessageResponse()
