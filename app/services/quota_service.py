"""Admin room and voter capacity ceilings."""

from __future__ import annotations

from typing import Any

from app.services.room_session import WILD_LIMITED
from app.services.store import VotingStore
from app.utils.errors import (
    AdminNotFoundError,
    MaxRoomExceededError,
    MaxVotersExceededError,
    ServiceUnavailableError,
)


def projected_room_voters(room: dict[str, Any]) -> int:
    """Voter capacity a new room claims at creation time.

    custom_tickets rooms claim capacity per ticket at issuance, and
    wild_unlimited rooms are bounded only by their session window.
    """
    if room.get("voters_type") == WILD_LIMITED and room.get("voters_limit") is not None:
        return int(room["voters_limit"])
    return 0


class QuotaGuard:
    """Check an admin's ceilings before capacity-consuming writes.

    These checks are early exits. The store functions that perform the
    writes repeat them under a lock on the admin row.
    """

    def __init__(self, store: VotingStore) -> None:
        self.store = store

    def get_usage(self, admin_id: str) -> tuple[dict[str, Any], int, int]:
        """Return the admin with its current room and voter counts."""
        admin = self.store.get_admin(admin_id)
        room_count, voter_count = self.store.get_admin_usage(admin_id)
        return admin, room_count, voter_count

    def check_room_quota(self, admin_id: str) -> None:
        admin, room_count, _ = self.get_usage(admin_id)
        if room_count >= int(admin["max_room"]):
            raise MaxRoomExceededError()

    def check_voter_quota(self, admin_id: str, additional_voters: int) -> None:
        admin, _, voter_count = self.get_usage(admin_id)
        if voter_count + additional_voters > int(admin["max_voters"]):
            raise MaxVotersExceededError()

    @staticmethod
    def raise_for_reason(reason: str) -> None:
        """Map a quota-guarded store function's failure reason to an error."""
        if reason == "ok":
            return
        if reason == "admin_not_found":
            raise AdminNotFoundError()
        if reason == "max_room_exceeded":
            raise MaxRoomExceededError()
        if reason == "max_voters_exceeded":
            raise MaxVotersExceededError()
        raise ServiceUnavailableError(f"Unexpected store response: {reason or 'empty'}")
