from fastapi import APIRouter, Depends
from access import require_facilitator
from dependencies import get_venue_service
from schemas.auth import MessageResponse
from schemas.rooms import CreateRoomRequest, RoomResponse
from services.venue import VenueService
from logging_config import get_logger

logger = get_logger(__name__)

rooms_router = APIRouter(prefix="/rooms", tags=["rooms"], dependencies=[Depends(require_facilitator)])


@rooms_router.get("", response_model=list[RoomResponse])
def list_rooms(venue: VenueService = Depends(get_venue_service)):
    return venue.list_rooms()


@rooms_router.post("", response_model=RoomResponse, status_code=201)
def create_room(room: CreateRoomRequest, venue: VenueService = Depends(get_venue_service)):
    logger.info(f"Room creation request, name: {room.name}")
    return venue.create_room(room.name)


@rooms_router.delete("/{room_id}", response_model=MessageResponse)
def delete_room(room_id: str, venue: VenueService = Depends(get_venue_service)):
    # Refused with 409 while any slot still points at the room
    venue.delete_room(room_id)
    return MessageResponse(message="Room deleted")
