"""
Relational store: SQLAlchemy engine, session factory and FastAPI dependency.

Users, rooms and slots live here. Every request gets its own session which is
closed when the route completes.
"""

from typing import Generator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from constants import DATABASE_URL
from logging_config import get_logger

logger = get_logger(__name__)


class Base(DeclarativeBase):
    pass


def build_engine(database_url: str = DATABASE_URL, **kwargs) -> Engine:
    if database_url.startswith("sqlite"):
        # SQLite connections are shared across the threadpool FastAPI runs sync code in
        kwargs.setdefault("connect_args", {"check_same_thread": False})
    else:
        kwargs.setdefault("pool_pre_ping", True)
    return create_engine(database_url, **kwargs)


engine = build_engine()
SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)


def init_db(bind: Engine = engine) -> None:
    """Create missing tables. Importing models registers them on Base.metadata."""
    import models  # noqa: F401

    Base.metadata.create_all(bind=bind)
    logger.info(f"Database tables ensured on {bind.url.render_as_string(hide_password=True)}")


def get_db() -> Generator[Session, None, None]:
    """FastAPI dependency yielding a request-scoped session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
