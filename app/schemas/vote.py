"""Voting schemas."""

from datetime import datetime

from pydantic import BaseModel, Field

from app.schemas.room import CandidateResponse, RoomResponse


class VoteCreate(BaseModel):
    """Request body for casting a vote."""

    room_id: str = Field(..., min_length=1)
    candidate_id: str = Field(..., min_length=1)
    sub_candidate_id: str | None = None
    ticket_code: str | None = None


class VoteResponse(BaseModel):
    """A recorded vote."""

    id: str
    room_id: str
    candidate_id: str
    sub_candidate_id: str | None = None
    voter_identifier: str
    created_at: datetime


class VoterRoomInfoResponse(BaseModel):
    """Ballot information shown to voters."""

    room: RoomResponse
    candidates: list[CandidateResponse]
    requires_ticket: bool
    is_active: bool
    message: str = ""


class CandidateVoteCount(BaseModel):
    """Vote count for one candidate."""

    candidate_id: str
    candidate_name: str = ""
    vote_count: int
    last_vote_at: datetime | None = None


class RealtimeTallyResponse(BaseModel):
    """Realtime counts for polling dashboards."""

    room_id: str
    room_name: str
    session_state: str
    vote_data: list[CandidateVoteCount]
    total_votes: int
    updated_at: datetime


class TallyResponse(BaseModel):
    """Historical counts, highest first."""

    room_id: str
    room_name: str
    counts: list[CandidateVoteCount]
    total_votes: int
