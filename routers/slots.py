from fastapi import APIRouter, Depends
from access import require_facilitator
from dependencies import get_venue_service
from schemas.auth import MessageResponse
from schemas.slots import CreateSlotRequest, UpdateSlotRoomRequest, SlotResponse
from services.venue import VenueService
from logging_config import get_logger

logger = get_logger(__name__)

slots_router = APIRouter(prefix="/slots", tags=["slots"], dependencies=[Depends(require_facilitator)])


@slots_router.get("", response_model=list[SlotResponse])
def list_slots(venue: VenueService = Depends(get_venue_service)):
    return venue.list_slots()


@slots_router.post("", response_model=SlotResponse, status_code=201)
def create_slot(slot: CreateSlotRequest, venue: VenueService = Depends(get_venue_service)):
    logger.info(f"Slot creation request: start_time={slot.start_time}, duration={slot.duration_minutes}, room={slot.room_id}")
    return venue.create_slot(slot.start_time, slot.duration_minutes, slot.room_id)


@slots_router.delete("/{slot_id}", response_model=MessageResponse)
def delete_slot(slot_id: str, venue: VenueService = Depends(get_venue_service)):
    venue.delete_slot(slot_id)
    return MessageResponse(message="Slot deleted")


@slots_router.patch("/{slot_id}", response_model=SlotResponse)
def set_slot_room(slot_id: str, body: UpdateSlotRoomRequest, venue: VenueService = Depends(get_venue_service)):
    return venue.set_slot_room(slot_id, body.room_id)
