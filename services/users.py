"""Admin user listing and removal. Creation goes through AuthService.invite_user."""

from sqlalchemy import select
from sqlalchemy.orm import Session

from errors import NotFoundError, CannotDeleteSelf
from models import User
from schemas.auth import Identity
from logging_config import get_logger

logger = get_logger(__name__)


class UserService:
    def __init__(self, db: Session):
        self.db = db

    def list_users(self) -> list[User]:
        return list(self.db.scalars(select(User).order_by(User.email)))

    def delete_user(self, user_id: str, actor: Identity) -> None:
        if user_id == actor.user_id:
            logger.warning(f"{actor.email} tried to delete their own account")
            raise CannotDeleteSelf()
        user = self.db.get(User, user_id)
        if user is None:
            raise NotFoundError("User", user_id)
        if user.email == actor.email:
            raise CannotDeleteSelf()
        self.db.delete(user)
        self.db.commit()
        logger.info(f"User {user_id} ({user.email}) deleted by {actor.email}")
