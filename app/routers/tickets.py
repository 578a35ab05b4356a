"""Admin ticket endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from app.dependencies import get_current_admin_id, get_room_service, get_ticket_ledger
from app.schemas.ticket import TicketBulkCreate, TicketCreate, TicketResponse
from app.services.room_service import RoomService
from app.services.ticket_service import TicketLedger

router = APIRouter()


@router.post("", response_model=TicketResponse, status_code=201)
def create_ticket(
    payload: TicketCreate,
    admin_id: str = Depends(get_current_admin_id),
    rooms: RoomService = Depends(get_room_service),
    tickets: TicketLedger = Depends(get_ticket_ledger),
) -> dict:
    """Issue one ticket."""
    rooms.get_owned_room(admin_id, payload.room_id)
    return tickets.issue(payload.room_id, payload.code)


@router.post("/bulk", response_model=list[TicketResponse], status_code=201)
def create_tickets_bulk(
    payload: TicketBulkCreate,
    admin_id: str = Depends(get_current_admin_id),
    rooms: RoomService = Depends(get_room_service),
    tickets: TicketLedger = Depends(get_ticket_ledger),
) -> list:
    """Issue a batch of tickets; any duplicate rejects the whole batch."""
    rooms.get_owned_room(admin_id, payload.room_id)
    return tickets.issue_bulk(payload.room_id, payload.codes)


@router.get("/room/{room_id}", response_model=list[TicketResponse])
def list_tickets(
    room_id: str,
    admin_id: str = Depends(get_current_admin_id),
    rooms: RoomService = Depends(get_room_service),
    tickets: TicketLedger = Depends(get_ticket_ledger),
) -> list:
    """List tickets of a room."""
    rooms.get_owned_room(admin_id, room_id)
    return tickets.list_tickets(room_id)
