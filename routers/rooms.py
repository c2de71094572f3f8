from fastapi import APIRouter, HTTPException, Request
from schemas.rooms import RoomDetailsResponse, RoomListResponse, RoomSummary
from registry import room_registry
from logging_config import get_logger

logger = get_logger(__name__)

rooms_router = APIRouter(prefix="/rooms", tags=["rooms"])


@rooms_router.get("", response_model=RoomListResponse)
async def list_rooms(request: Request):
    """List active rooms with their participant counts. Read-only."""
    client_host = request.client.host if request.client else 'unknown'
    rooms = await room_registry.rooms()
    logger.debug(f"Room list request from {client_host}: {len(rooms)} rooms")
    return RoomListResponse(
        rooms=[RoomSummary(room_id=room_id, participant_count=len(participants)) for room_id, participants in rooms.items()],
        room_count=len(rooms),
    )


@rooms_router.get("/{room_id}", response_model=RoomDetailsResponse)
async def get_room_details(room_id: str, request: Request):
    """
    Get the participants currently registered in a room.

    Returns:
    - room_id: Room identifier
    - participants: Participant ids, in no particular order
    - participant_count: Number of participants
    """
    client_host = request.client.host if request.client else 'unknown'
    logger.info(f"Room details request for {room_id} from {client_host}")

    participants = await room_registry.list_participants(room_id)
    if not participants:
        logger.warning(f"Room details failed: Room {room_id} not found")
        raise HTTPException(status_code=404, detail="Room not found")

    return RoomDetailsResponse(
        room_id=room_id,
        participants=participants,
        participant_count=len(participants),
    )
