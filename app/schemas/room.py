"""Room and candidate schemas."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

VotersType = Literal["custom_tickets", "wild_limited", "wild_unlimited"]


class RoomCreate(BaseModel):
    """Request body for creating a room."""

    name: str = Field(..., min_length=1, max_length=200)
    voters_type: VotersType
    voters_limit: int | None = Field(default=None, gt=0)
    session_start_time: datetime | None = None
    session_end_time: datetime | None = None
    status: Literal["enabled", "disabled"] = "enabled"
    publish_state: Literal["draft", "published"] = "draft"


class RoomResponse(BaseModel):
    """Room representation."""

    id: str
    admin_id: str
    name: str
    voters_type: VotersType
    voters_limit: int | None = None
    session_start_time: datetime | None = None
    session_end_time: datetime | None = None
    status: str
    publish_state: str
    session_state: str
    created_at: datetime | None = None
    updated_at: datetime | None = None


class SubCandidateResponse(BaseModel):
    """Sub-candidate (e.g. running mate) representation."""

    id: str
    candidate_id: str
    name: str
    photo_url: str = ""
    description: str | None = None


class CandidateResponse(BaseModel):
    """Candidate with sub-candidates."""

    id: str
    room_id: str
    name: str
    photo_url: str = ""
    description: str = ""
    sub_candidates: list[SubCandidateResponse] = Field(default_factory=list)
