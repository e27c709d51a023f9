"""
FastAPI dependency factories for the services.

Each request builds fresh service objects around the request-scoped database
session and the shared Redis backend; nothing here keeps state between requests.
"""

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from backend import RedisBackend, get_redis_backend
from constants import PUBLIC_BASE_URL
from database import get_db
from services.auth import AuthService
from services.ideas import IdeaService
from services.users import UserService
from services.venue import VenueService


def get_auth_service(
    store: RedisBackend = Depends(get_redis_backend),
    db: Session = Depends(get_db),
) -> AuthService:
    return AuthService(store, db)


def get_idea_service(store: RedisBackend = Depends(get_redis_backend)) -> IdeaService:
    return IdeaService(store)


def get_venue_service(db: Session = Depends(get_db)) -> VenueService:
    return VenueService(db)


def get_user_service(db: Session = Depends(get_db)) -> UserService:
    return UserService(db)


def get_public_base_url(request: Request) -> str:
    """Origin used in magic links: PUBLIC_BASE_URL if set, else the request's own."""
    if PUBLIC_BASE_URL:
        return PUBLIC_BASE_URL.rstrip("/")
    return str(request.base_url).rstrip("/")
