"""Ticket schemas."""

from datetime import datetime

from pydantic import BaseModel, Field


class TicketCreate(BaseModel):
    """Request body for issuing one ticket."""

    room_id: str = Field(..., min_length=1)
    code: str = Field(..., min_length=1, max_length=100)


class TicketBulkCreate(BaseModel):
    """Request body for issuing many tickets at once."""

    room_id: str = Field(..., min_length=1)
    codes: list[str] = Field(..., min_length=1, max_length=10000)


class TicketResponse(BaseModel):
    """Ticket representation."""

    id: str
    room_id: str
    code: str
    is_used: bool
    used_at: datetime | None = None
    created_at: datetime | None = None


class VerifyTicketRequest(BaseModel):
    """Request body for checking a ticket before voting."""

    room_id: str = Field(..., min_length=1)
    ticket_code: str = Field(..., min_length=1)


class VerifyTicketResponse(BaseModel):
    """Whether a ticket can still be used."""

    valid: bool
    message: str = ""
