"""ORM models for the relational store: users, rooms and slots."""

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from database import Base


def _prefixed_id(prefix: str):
    return lambda: f"{prefix}_{uuid.uuid4()}"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(Base):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=_prefixed_id("usr"))
    email: Mapped[str] = mapped_column(String(320), unique=True, nullable=False, index=True)
    role: Mapped[str] = mapped_column(String(32), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, nullable=False)

    def to_dict(self) -> dict:
        return {"id": self.id, "email": self.email, "role": self.role}


class Room(Base):
    __tablename__ = "rooms"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=_prefixed_id("room"))
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, nullable=False)


class Slot(Base):
    __tablename__ = "slots"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=_prefixed_id("slot"))
    start_time: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    duration_minutes: Mapped[int] = mapped_column(Integer, nullable=False)
    # No ON DELETE cascade: room deletion is refused while slots reference it
    room_id: Mapped[Optional[str]] = mapped_column(String(64), ForeignKey("rooms.id"), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, nullable=False)
