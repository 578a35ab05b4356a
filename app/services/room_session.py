"""Room predicates and the open/closed session transition."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from app.services.store import VotingStore
from app.utils.errors import InvalidInputError
from app.utils.time import parse_timestamp, within_window

logger = logging.getLogger(__name__)

CUSTOM_TICKETS = "custom_tickets"
WILD_LIMITED = "wild_limited"
WILD_UNLIMITED = "wild_unlimited"
VOTERS_TYPES = (CUSTOM_TICKETS, WILD_LIMITED, WILD_UNLIMITED)

STATUS_ENABLED = "enabled"
PUBLISH_PUBLISHED = "published"
SESSION_OPEN = "open"


def validate_room(room: dict[str, Any]) -> None:
    """Raise InvalidInputError when voters_type-specific fields are inconsistent."""
    if not str(room.get("name") or "").strip():
        raise InvalidInputError("Room name is required", code="INVALID_ROOM_NAME")

    voters_type = room.get("voters_type")
    if voters_type not in VOTERS_TYPES:
        raise InvalidInputError("Invalid voters type", code="INVALID_VOTERS_TYPE")

    if voters_type == WILD_LIMITED:
        limit = room.get("voters_limit")
        if limit is None or int(limit) <= 0:
            raise InvalidInputError(
                "Voters limit is required for wild_limited type",
                code="VOTERS_LIMIT_REQUIRED",
            )

    if voters_type == WILD_UNLIMITED:
        start = parse_timestamp(room.get("session_start_time"))
        end = parse_timestamp(room.get("session_end_time"))
        if start is None or end is None:
            raise InvalidInputError(
                "Session time range is required for wild_unlimited type",
                code="SESSION_RANGE_REQUIRED",
            )
        if end < start:
            raise InvalidInputError(
                "Session end time must be after start time",
                code="INVALID_SESSION_RANGE",
            )


def is_session_active(room: dict[str, Any], now: datetime) -> bool:
    """Return whether ``now`` falls in the room's voting window.

    Only wild_unlimited rooms have a window; other types are always active.
    """
    if room.get("voters_type") != WILD_UNLIMITED:
        return True
    return within_window(
        now,
        parse_timestamp(room.get("session_start_time")),
        parse_timestamp(room.get("session_end_time")),
    )


def limit_reached(room: dict[str, Any], total_votes: int) -> bool:
    """Return whether a wild_limited room has used up its ceiling."""
    if room.get("voters_type") != WILD_LIMITED:
        return False
    limit = room.get("voters_limit")
    return limit is not None and total_votes >= int(limit)


class RoomSessionStateMachine:
    """Own the open -> closed transition of a room's voting session.

    There is no automated closed -> open edge. Closing is a conditional write,
    so concurrent triggers on the same room collapse into one effective close.
    """

    def __init__(self, store: VotingStore) -> None:
        self.store = store

    def close(self, room_id: str, reason: str) -> bool:
        """Close the session; returns True only for the call that flipped it."""
        closed = self.store.conditional_close_session(room_id)
        if closed:
            logger.info("Room %s session closed (%s)", room_id, reason)
        return closed

    def reconcile(self, room: dict[str, Any], total_votes: int) -> bool:
        """Close a wild_limited room whose vote count reached its limit."""
        if not limit_reached(room, total_votes):
            return False
        self.close(str(room["id"]), reason="vote limit reached")
        return True
