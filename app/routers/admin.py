"""Admin endpoints for rooms, quota and live results."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from app.dependencies import (
    get_current_admin_id,
    get_quota_guard,
    get_room_service,
    get_voting_service,
)
from app.schemas.auth import AdminQuotaResponse
from app.schemas.room import RoomCreate, RoomResponse
from app.schemas.vote import RealtimeTallyResponse, TallyResponse
from app.services.quota_service import QuotaGuard
from app.services.room_service import RoomService
from app.services.voting_service import VotingService

router = APIRouter()


@router.get("/quota", response_model=AdminQuotaResponse)
def get_quota(
    admin_id: str = Depends(get_current_admin_id),
    quota: QuotaGuard = Depends(get_quota_guard),
) -> dict:
    """Return current usage against the admin's ceilings."""
    admin, current_rooms, current_voters = quota.get_usage(admin_id)
    return {
        "admin": admin,
        "current_rooms": current_rooms,
        "current_voters": current_voters,
        "room_limit": admin["max_room"],
        "voters_limit": admin["max_voters"],
    }


@router.post("/rooms", response_model=RoomResponse, status_code=201)
def create_room(
    payload: RoomCreate,
    admin_id: str = Depends(get_current_admin_id),
    rooms: RoomService = Depends(get_room_service),
) -> dict:
    """Create a room within the admin's quota."""
    return rooms.create_room(admin_id, payload.model_dump(mode="json", exclude_none=True))


@router.post("/rooms/{room_id}/close", response_model=RoomResponse)
def close_room_session(
    room_id: str,
    admin_id: str = Depends(get_current_admin_id),
    rooms: RoomService = Depends(get_room_service),
) -> dict:
    """Close a room's voting session."""
    return rooms.close_session(admin_id, room_id)


@router.get("/rooms/{room_id}/realtime", response_model=RealtimeTallyResponse)
def get_realtime_tally(
    room_id: str,
    admin_id: str = Depends(get_current_admin_id),
    rooms: RoomService = Depends(get_room_service),
    service: VotingService = Depends(get_voting_service),
) -> dict:
    """Return live per-candidate counts for polling."""
    rooms.get_owned_room(admin_id, room_id)
    return service.get_realtime_tally(room_id)


@router.get("/rooms/{room_id}/tallies", response_model=TallyResponse)
def get_tallies(
    room_id: str,
    admin_id: str = Depends(get_current_admin_id),
    rooms: RoomService = Depends(get_room_service),
    service: VotingService = Depends(get_voting_service),
) -> dict:
    """Return per-candidate counts, highest first."""
    rooms.get_owned_room(admin_id, room_id)
    return service.get_tallies(room_id)
