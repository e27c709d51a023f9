"""Rooms and time slots in the relational store."""

from typing import Optional

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from errors import ValidationError, NotFoundError, RoomInUse
from models import Room, Slot
from logging_config import get_logger

logger = get_logger(__name__)


def slot_row(slot: Slot, room_name: Optional[str]) -> dict:
    return {
        "id": slot.id,
        "start_time": slot.start_time,
        "duration_minutes": slot.duration_minutes,
        "room_id": slot.room_id,
        "room_name": room_name,
    }


class VenueService:
    def __init__(self, db: Session):
        self.db = db

    # Rooms

    def list_rooms(self) -> list[Room]:
        return list(self.db.scalars(select(Room).order_by(Room.name)))

    def create_room(self, name: Optional[str]) -> Room:
        if not name or not name.strip():
            raise ValidationError("Room name is required")
        room = Room(name=name.strip())
        self.db.add(room)
        self.db.commit()
        logger.info(f"Room {room.id} created: {room.name}")
        return room

    def delete_room(self, room_id: str) -> None:
        room = self.db.get(Room, room_id)
        if room is None:
            raise NotFoundError("Room", room_id)
        in_use = self.db.scalar(select(func.count()).select_from(Slot).where(Slot.room_id == room_id))
        if in_use:
            logger.warning(f"Delete room {room_id} refused: {in_use} slots reference it")
            raise RoomInUse(room_id)
        self.db.delete(room)
        self.db.commit()
        logger.info(f"Room {room_id} deleted")

    def _require_room(self, room_id: str) -> Room:
        room = self.db.get(Room, room_id)
        if room is None:
            raise NotFoundError("Room", room_id)
        return room

    # Slots

    def list_slots(self) -> list[dict]:
        """Slots with their room name, ordered by start time then room name."""
        rows = self.db.execute(
            select(Slot, Room.name)
            .outerjoin(Room, Slot.room_id == Room.id)
            .order_by(Slot.start_time, Room.name)
        ).all()
        return [slot_row(slot, room_name) for slot, room_name in rows]

    def create_slot(self, start_time: Optional[str], duration_minutes: Optional[int], room_id: Optional[str] = None) -> dict:
        if not start_time or not start_time.strip():
            raise ValidationError("Start time is required")
        if not isinstance(duration_minutes, int) or isinstance(duration_minutes, bool) or duration_minutes <= 0:
            raise ValidationError("Duration must be a positive number of minutes")

        room_name = None
        if room_id:
            room_name = self._require_room(room_id).name

        slot = Slot(start_time=start_time.strip(), duration_minutes=duration_minutes, room_id=room_id or None)
        self.db.add(slot)
        self.db.commit()
        logger.info(f"Slot {slot.id} created at {slot.start_time} for {duration_minutes} minutes")
        return slot_row(slot, room_name)

    def delete_slot(self, slot_id: str) -> None:
        result = self.db.execute(delete(Slot).where(Slot.id == slot_id))
        self.db.commit()
        if not result.rowcount:
            raise NotFoundError("Slot", slot_id)
        logger.info(f"Slot {slot_id} deleted")

    def set_slot_room(self, slot_id: str, room_id: Optional[str]) -> dict:
        if not room_id:
            raise ValidationError("Room ID is required")
        slot = self.db.get(Slot, slot_id)
        if slot is None:
            raise NotFoundError("Slot", slot_id)
        room = self._require_room(room_id)
        slot.room_id = room.id
        self.db.commit()
        logger.info(f"Slot {slot_id} moved to room {room_id}")
        return slot_row(slot, room.name)

    def delete_all(self) -> tuple[int, int]:
        """Remove every slot and room. Returns (slots, rooms) deleted."""
        slots = self.db.execute(delete(Slot)).rowcount
        rooms = self.db.execute(delete(Room)).rowcount
        self.db.commit()
        logger.info(f"Deleted {slots} slots and {rooms} rooms")
        return slots, rooms
