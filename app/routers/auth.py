"""Authentication endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from app.dependencies import get_auth_service
from app.schemas.auth import LoginRequest, LoginResponse
from app.services.auth_service import AuthService

router = APIRouter()


@router.post("/login", response_model=LoginResponse)
def login(
    payload: LoginRequest,
    service: AuthService = Depends(get_auth_service),
) -> dict:
    """Exchange admin credentials for a session token."""
    return service.login(
        username=payload.username,
        encrypted_password=payload.encrypted_password,
    )
