"""Admin authentication and quota schemas."""

from datetime import datetime

from pydantic import BaseModel, Field


class LoginRequest(BaseModel):
    """Login with the frontend-encrypted password."""

    username: str = Field(..., min_length=1, max_length=50)
    encrypted_password: str = Field(..., min_length=1)


class AdminInfo(BaseModel):
    """Admin representation without credentials."""

    id: str
    username: str
    max_room: int
    max_voters: int
    is_active: bool


class LoginResponse(BaseModel):
    """Session token for an authenticated admin."""

    token: str
    expires_at: datetime
    admin: AdminInfo


class AdminQuotaResponse(BaseModel):
    """Admin usage against its ceilings."""

    admin: AdminInfo
    current_rooms: int
    current_voters: int
    room_limit: int
    voters_limit: int
