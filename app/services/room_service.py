"""Room creation under quota and operator session control."""

from __future__ import annotations

import logging
from typing import Any

from app.services.quota_service import QuotaGuard, projected_room_voters
from app.services.room_session import SESSION_OPEN, RoomSessionStateMachine, validate_room
from app.services.store import VotingStore
from app.utils.errors import ForbiddenError

logger = logging.getLogger(__name__)


class RoomService:
    """Create rooms and close their sessions on behalf of an admin."""

    def __init__(self, store: VotingStore, quota: QuotaGuard | None = None) -> None:
        self.store = store
        self.quota = quota or QuotaGuard(store)
        self.sessions = RoomSessionStateMachine(store)

    def create_room(self, admin_id: str, payload: dict[str, Any]) -> dict[str, Any]:
        """Create an open room if the admin has room and voter capacity left."""
        room = {
            **payload,
            "admin_id": admin_id,
            "session_state": SESSION_OPEN,
        }
        validate_room(room)

        self.quota.check_room_quota(admin_id)
        self.quota.check_voter_quota(admin_id, projected_room_voters(room))

        reason, created = self.store.insert_room_within_quota(admin_id, room)
        self.quota.raise_for_reason(reason)
        logger.info("Admin %s created %s room %s", admin_id, room["voters_type"], created["id"])
        return created

    def get_owned_room(self, admin_id: str, room_id: str) -> dict[str, Any]:
        room = self.store.get_room(room_id)
        if str(room.get("admin_id")) != str(admin_id):
            raise ForbiddenError("You do not own this room")
        return room

    def close_session(self, admin_id: str, room_id: str) -> dict[str, Any]:
        """Close a room's session by hand; closing twice is a no-op."""
        self.get_owned_room(admin_id, room_id)
        self.sessions.close(room_id, reason=f"closed by admin {admin_id}")
        return self.store.get_room(room_id)
