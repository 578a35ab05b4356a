"""Service package exports with lazy loading."""

from __future__ import annotations

from importlib import import_module
from typing import Any

_EXPORTS = {
    "AuthService": "app.services.auth_service",
    "LoginThrottle": "app.services.auth_service",
    "QuotaGuard": "app.services.quota_service",
    "RoomService": "app.services.room_service",
    "RoomSessionStateMachine": "app.services.room_session",
    "SupabaseService": "app.services.common",
    "TicketLedger": "app.services.ticket_service",
    "VoteLedger": "app.services.vote_ledger",
    "VoterEligibilityResolver": "app.services.eligibility",
    "VotingService": "app.services.voting_service",
    "VotingStore": "app.services.store",
}

__all__ = sorted(_EXPORTS.keys())


def __getattr__(name: str) -> Any:
    if name not in _EXPORTS:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
    module = import_module(_EXPORTS[name])
    return getattr(module, name)
