"""
Passwordless authentication.

Flow per login attempt: anonymous -> token issued -> verified (session) ->
expired or logged out. Tokens and sessions only exist in Redis and die by TTL;
the session id reaches the browser inside an HMAC-signed cookie.
"""

import hashlib
import hmac
import re
import secrets
from datetime import datetime, timezone
from typing import Optional
from urllib.parse import urlencode

from sqlalchemy import select
from sqlalchemy.orm import Session

from backend import RedisBackend
from constants import (
    SESSION_SECRET, LOGIN_TOKEN_TTL, INVITE_TOKEN_TTL, SESSION_TTL, VALID_ROLES,
)
from errors import (
    ValidationError, InvalidRole, InvalidOrExpiredToken, DuplicateUser, UserCreatedEmailFailed, StorageError,
)
from mailer import MailgunMailer
from models import User
from schemas.auth import Identity
from logging_config import get_logger

logger = get_logger(__name__)

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def normalize_email(email: Optional[str]) -> str:
    return (email or "").strip().lower()


def generate_token() -> str:
    return secrets.token_urlsafe(32)


def build_verify_link(base_url: str, token: str) -> str:
    return f"{base_url.rstrip('/')}/verify-login?{urlencode({'token': token})}"


def sign_session_id(session_id: str, secret: str = SESSION_SECRET) -> str:
    digest = hmac.new(secret.encode("utf-8"), session_id.encode("utf-8"), hashlib.sha256).hexdigest()
    return f"{session_id}.{digest}"


def unsign_session_id(signed: Optional[str], secret: str = SESSION_SECRET) -> Optional[str]:
    if not signed or "." not in signed:
        return None
    session_id, digest = signed.rsplit(".", 1)
    expected = hmac.new(secret.encode("utf-8"), session_id.encode("utf-8"), hashlib.sha256).hexdigest()
    if hmac.compare_digest(digest, expected):
        return session_id
    return None


class AuthService:
    def __init__(self, store: RedisBackend, db: Session):
        self.store = store
        self.db = db

    def _find_user(self, email: str) -> Optional[User]:
        return self.db.scalars(select(User).where(User.email == email)).first()

    def _issue_token(self, user: User, purpose: str, ttl: int) -> str:
        token = generate_token()
        self.store.create_token(token, {
            "user_id": user.id,
            "email": user.email,
            "role": user.role,
            "purpose": purpose,
        }, ttl=ttl)
        logger.info(f"Issued {purpose} token for {user.email}, valid for {ttl} seconds")
        return token

    def request_login(self, email: Optional[str], base_url: str) -> Optional[str]:
        """Issue a login token for a known user and return the magic link.

        Returns None for unknown emails. Callers must answer both cases with
        the same generic message.
        """
        email = normalize_email(email)
        if not email:
            raise ValidationError("Email is required")

        user = self._find_user(email)
        if user is None:
            logger.info(f"Login attempt for non-existent user: {email}")
            return None

        token = self._issue_token(user, "login", LOGIN_TOKEN_TTL)
        link = build_verify_link(base_url, token)
        logger.debug(f"Magic link for {email}: {link}")
        return link

    def verify(self, token: Optional[str]) -> tuple[str, Identity]:
        """Consume a token and open a session. Returns (session_id, identity)."""
        if not token:
            raise ValidationError("Token is required")

        token_data = self.store.consume_token(token)
        if token_data is None:
            logger.warning("Verification attempted with an invalid or expired token")
            raise InvalidOrExpiredToken()

        identity = Identity(
            user_id=token_data.get("user_id"),
            email=token_data["email"],
            role=token_data["role"],
        )
        session_id = secrets.token_urlsafe(32)
        self.store.create_session(session_id, {
            **identity.model_dump(),
            "created_at": datetime.now(timezone.utc).isoformat(),
        }, ttl=SESSION_TTL)
        logger.info(f"Session created for {identity.email} ({identity.role})")
        return session_id, identity

    def resolve_session(self, cookie_value: Optional[str]) -> Optional[Identity]:
        """Map a session cookie to an identity; anything unusable is anonymous."""
        session_id = unsign_session_id(cookie_value)
        if session_id is None:
            return None
        session = self.store.get_session(session_id)
        if session is None:
            return None
        return Identity(user_id=session.get("user_id"), email=session["email"], role=session["role"])

    def logout(self, cookie_value: Optional[str]) -> None:
        session_id = unsign_session_id(cookie_value)
        if session_id is None:
            return
        if self.store.delete_session(session_id):
            logger.info("Session logged out")

    async def invite_user(
        self,
        email: Optional[str],
        role: Optional[str],
        inviter: Identity,
        base_url: str,
        mailer: MailgunMailer,
    ) -> User:
        """Create a user and email them a 7-day login link.

        The user row is kept when delivery fails; UserCreatedEmailFailed tells
        the admin to notify the user some other way. It is removed again when
        the invite token cannot be stored.
        """
        email = normalize_email(email)
        if not email or not role:
            raise ValidationError("Email and role are required")
        if role not in VALID_ROLES:
            raise InvalidRole(role)
        if not EMAIL_PATTERN.match(email):
            raise ValidationError(f"Invalid email address: {email}")
        if self._find_user(email) is not None:
            logger.warning(f"Invite rejected: {email} already exists")
            raise DuplicateUser(email)

        user = User(email=email, role=role)
        self.db.add(user)
        self.db.commit()
        logger.info(f"User {user.id} ({email}) created with role {role} by {inviter.email}")

        try:
            token = self._issue_token(user, "invite", INVITE_TOKEN_TTL)
        except StorageError:
            logger.error(f"Invite token for {email} could not be stored, removing user {user.id}")
            self.db.delete(user)
            self.db.commit()
            raise
        link = build_verify_link(base_url, token)
        logger.debug(f"Invite link for {email}: {link}")

        result = await mailer.send_invitation(email, link, role, inviter.email)
        if not result.success:
            logger.error(f"Failed to send invitation email to {email}: {result.error}")
            raise UserCreatedEmailFailed(user.to_dict())
        return user


async def deliver_login_link(mailer: MailgunMailer, email: str, link: str) -> None:
    """Background task: the outcome is logged and never reaches the client."""
    result = await mailer.send_login_link(email, link)
    if not result.success:
        logger.error(f"Failed to send magic link email to {email}: {result.error}")
