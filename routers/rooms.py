from typing import List

from fastapi import APIRouter, HTTPException, Request

from logging_config import get_logger
from schemas.rooms import RoomSummary

logger = get_logger(__name__)

rooms_router = APIRouter(prefix="/rooms", tags=["rooms"])


@rooms_router.get("/", response_model=List[RoomSummary])
async def list_rooms(request: Request):
    registry = request.app.state.registry
    rooms = await registry.list_rooms()
    logger.debug(f"Listing {len(rooms)} active rooms")
    return [RoomSummary(**room) for room in rooms]


@rooms_router.get("/{room_id}", response_model=RoomSummary)
async def get_room_details(room_id: str, request: Request):
    """
    Get the live membership of a room.

    Returns:
    - room_id: Room key as used in the join command
    - members: Number of currently joined connections
    - capacity: Maximum members allowed
    - is_full: Whether a further join would be rejected
    """
    client_host = request.client.host if request.client else "unknown"
    logger.info(f"Room details request for {room_id} from {client_host}")

    room = await request.app.state.registry.describe(room_id)
    if room is None:
        logger.info(f"Room details failed: Room {room_id} not found")
        raise HTTPException(status_code=404, detail="Room not found")
    return RoomSummary(**room)
