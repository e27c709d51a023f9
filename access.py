"""
Access policy gate.

get_current_identity resolves the session cookie on every request; the two
require_* dependencies short-circuit with a uniform 403 before the route body
runs, so a failed check never reveals whether the target resource exists.
"""

from typing import Iterable, Optional

from fastapi import Depends, Request

from constants import SESSION_COOKIE_NAME, ROLE_ADMIN, ROLE_FACILITATOR
from dependencies import get_auth_service
from errors import ForbiddenError
from schemas.auth import Identity
from services.auth import AuthService
from logging_config import get_logger

logger = get_logger(__name__)

FACILITATOR_ROLES = (ROLE_FACILITATOR, ROLE_ADMIN)
ADMIN_ROLES = (ROLE_ADMIN,)


def get_current_identity(
    request: Request,
    auth: AuthService = Depends(get_auth_service),
) -> Optional[Identity]:
    return auth.resolve_session(request.cookies.get(SESSION_COOKIE_NAME))


def has_role(identity: Optional[Identity], allowed: Iterable[str]) -> bool:
    return identity is not None and identity.role in allowed


def _require(identity: Optional[Identity], allowed: tuple, request: Request) -> Identity:
    if not has_role(identity, allowed):
        who = identity.email if identity else "anonymous"
        logger.warning(f"Access denied to {request.method} {request.url.path} for {who}")
        raise ForbiddenError()
    return identity


def require_facilitator(
    request: Request,
    identity: Optional[Identity] = Depends(get_current_identity),
) -> Identity:
    return _require(identity, FACILITATOR_ROLES, request)


def require_admin(
    request: Request,
    identity: Optional[Identity] = Depends(get_current_identity),
) -> Identity:
    return _require(identity, ADMIN_ROLES, request)
