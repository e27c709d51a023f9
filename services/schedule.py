"""Read-only join of slots and rooms (relational) with scheduled ideas (Redis)."""

from collections import defaultdict

from sqlalchemy import select
from sqlalchemy.orm import Session

from backend import RedisBackend
from models import Room
from schemas.ideas import ActiveIdea
from schemas.schedule import ScheduledSession, ScheduleSlot
from services.ideas import IdeaService
from services.venue import VenueService
from logging_config import get_logger

logger = get_logger(__name__)


def build_schedule(db: Session, store: RedisBackend) -> list[ScheduleSlot]:
    """Every slot, in start time then room name order, with its scheduled sessions.

    Empty slots are kept so open slots are visible. Ideas whose slot no longer
    exists are dropped, and a session whose room was removed has no room name.
    """
    slots = VenueService(db).list_slots()
    room_names = {room_id: name for room_id, name in db.execute(select(Room.id, Room.name)).all()}
    ideas = IdeaService(store).list_ideas()

    sessions_by_slot: dict[str, list[ScheduledSession]] = defaultdict(list)
    for idea in ideas:
        if not isinstance(idea, ActiveIdea) or not idea.slot_id or not idea.room_id:
            continue
        sessions_by_slot[idea.slot_id].append(
            ScheduledSession(**idea.model_dump(), room_name=room_names.get(idea.room_id))
        )

    schedule = [ScheduleSlot(**slot, sessions=sessions_by_slot.pop(slot["id"], [])) for slot in slots]

    if sessions_by_slot:
        dangling = sum(len(s) for s in sessions_by_slot.values())
        logger.debug(f"Dropped {dangling} sessions assigned to missing slots: {list(sessions_by_slot)}")
    return schedule
