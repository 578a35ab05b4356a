"""FastAPI dependency injection helpers."""

from __future__ import annotations

from datetime import timedelta
from typing import Any

from fastapi import Depends, Header

from app.config import settings
from app.services.auth_service import AuthService, LoginThrottle
from app.services.quota_service import QuotaGuard
from app.services.room_service import RoomService
from app.services.store import VotingStore
from app.services.ticket_service import TicketLedger
from app.services.voting_service import VotingService
from app.utils.crypto import parse_session_token
from app.utils.errors import UnauthorizedError
from app.utils.supabase_client import get_service_client
from app.utils.time import now_utc
from supabase import Client


def get_db_client() -> Client:
    """Return the privileged Supabase client used by backend services."""
    return get_service_client()


def get_store(client: Client = Depends(get_db_client)) -> VotingStore:
    return VotingStore(client)


def get_voting_service(store: VotingStore = Depends(get_store)) -> VotingService:
    return VotingService(store, voter_id_entropy_bytes=settings.voter_id_entropy_bytes)


def get_ticket_ledger(store: VotingStore = Depends(get_store)) -> TicketLedger:
    return TicketLedger(store)


def get_quota_guard(store: VotingStore = Depends(get_store)) -> QuotaGuard:
    return QuotaGuard(store)


def get_room_service(store: VotingStore = Depends(get_store)) -> RoomService:
    return RoomService(store)


def get_auth_service(store: VotingStore = Depends(get_store)) -> AuthService:
    throttle = LoginThrottle(
        store,
        max_failures=settings.login_max_failed_attempts,
        window=timedelta(minutes=settings.login_lockout_minutes),
    )
    return AuthService(
        store,
        encryption_key=settings.encryption_key,
        encryption_salt_front=settings.encryption_salt_front,
        encryption_salt_back=settings.encryption_salt_back,
        session_secret=settings.session_secret,
        session_ttl=timedelta(hours=settings.session_ttl_hours),
        throttle=throttle,
    )


def get_current_admin(authorization: str = Header(None)) -> dict[str, Any]:
    """Validate the admin session token from the Authorization header.

    Raises:
        UnauthorizedError: 401 if the header is missing, malformed, or
            the token is forged or expired.
    """
    if not authorization or not authorization.startswith("Bearer "):
        raise UnauthorizedError("Missing authorization header")

    token = authorization.split(" ", 1)[1]
    claims = parse_session_token(token, settings.session_secret, now_utc())
    if claims is None:
        raise UnauthorizedError("Invalid or expired token")
    return claims


def get_current_admin_id(claims: dict[str, Any] = Depends(get_current_admin)) -> str:
    """Extract the admin id from validated session claims."""
    return str(claims["admin_id"])
