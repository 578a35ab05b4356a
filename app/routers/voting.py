"""Public voter endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from app.dependencies import get_ticket_ledger, get_voting_service
from app.schemas.ticket import VerifyTicketRequest, VerifyTicketResponse
from app.schemas.vote import VoteCreate, VoteResponse, VoterRoomInfoResponse
from app.services.ticket_service import TicketLedger
from app.services.voting_service import VotingService
from app.utils.errors import AppError

router = APIRouter()


@router.get("", response_model=VoterRoomInfoResponse)
def get_voter_room_info(
    room_id: str = Query(..., min_length=1),
    service: VotingService = Depends(get_voting_service),
) -> dict:
    """Return the ballot for a room."""
    return service.get_voter_room_info(room_id)


@router.post("", response_model=VoteResponse, status_code=201)
def cast_vote(
    payload: VoteCreate,
    service: VotingService = Depends(get_voting_service),
) -> dict:
    """Cast one vote."""
    return service.cast_vote(
        room_id=payload.room_id,
        candidate_id=payload.candidate_id,
        sub_candidate_id=payload.sub_candidate_id,
        ticket_code=payload.ticket_code,
    )


@router.post("/verify-ticket", response_model=VerifyTicketResponse)
def verify_ticket(
    payload: VerifyTicketRequest,
    tickets: TicketLedger = Depends(get_ticket_ledger),
) -> dict:
    """Check that a ticket exists and is unused without redeeming it."""
    try:
        tickets.verify(payload.room_id, payload.ticket_code)
    except AppError as exc:
        if exc.code not in {"INVALID_TICKET", "TICKET_ALREADY_USED"}:
            raise
        return {"valid": False, "message": exc.message}
    return {"valid": True, "message": "Proceed to vote"}
