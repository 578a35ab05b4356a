"""Durable store primitives the voting engine relies on.

Every method here is individually atomic at the database. Multi-step
invariants (redeem-then-vote, bounded increment-then-vote, quota check then
insert, lockout check then record) run inside one Postgres function called
through RPC; see ``supabase/migrations/0001_voting_schema.sql``.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from app.services.common import SupabaseService
from app.utils.errors import AdminNotFoundError, DuplicateRecordError, RoomNotFoundError
from supabase import Client


def _first(rows: list[dict[str, Any]]) -> dict[str, Any]:
    return rows[0] if rows else {}


class VotingStore:
    """Supabase-backed implementation of the engine's store contract."""

    def __init__(self, client: Client) -> None:
        self.db = SupabaseService(client)

    # Rooms

    def get_room(self, room_id: str) -> dict[str, Any]:
        return self.db.select_one("rooms", {"id": room_id}, not_found=RoomNotFoundError())

    def conditional_close_session(self, room_id: str) -> bool:
        """Close an open session; returns False when it was already closed."""
        rows = self.db.update(
            "rooms",
            {"id": room_id, "session_state": "open"},
            {"session_state": "closed"},
        )
        return bool(rows)

    def insert_room_within_quota(
        self, admin_id: str, room: dict[str, Any]
    ) -> tuple[str, dict[str, Any] | None]:
        """Insert a room after re-checking both admin ceilings under a row lock."""
        payload = _first(
            self.db.rpc("create_room_within_quota", {"p_admin_id": admin_id, "p_room": room})
        )
        return str(payload.get("reason") or ""), payload.get("room")

    # Candidates

    def get_candidate(self, room_id: str, candidate_id: str) -> dict[str, Any] | None:
        return self.db.select_first("candidates", {"id": candidate_id, "room_id": room_id})

    def get_sub_candidate(self, candidate_id: str, sub_candidate_id: str) -> dict[str, Any] | None:
        return self.db.select_first(
            "sub_candidates", {"id": sub_candidate_id, "candidate_id": candidate_id}
        )

    def list_candidates(self, room_id: str) -> list[dict[str, Any]]:
        """Return room candidates with their sub-candidates embedded."""
        return self.db.select_many(
            "candidates",
            filters={"room_id": room_id},
            columns="*, sub_candidates(*)",
            order_by="created_at",
        )

    # Tickets

    def find_ticket_by_code(self, room_id: str, code: str) -> dict[str, Any] | None:
        return self.db.select_first("tickets", {"room_id": room_id, "code": code})

    def insert_tickets_within_quota(
        self, room_id: str, codes: list[str]
    ) -> tuple[str, list[dict[str, Any]]]:
        """Insert all codes or none, guarded by the (room_id, code) unique index."""
        payload = _first(self.db.rpc("issue_tickets", {"p_room_id": room_id, "p_codes": codes}))
        return str(payload.get("reason") or ""), list(payload.get("tickets") or [])

    def list_tickets(self, room_id: str) -> list[dict[str, Any]]:
        return self.db.select_many("tickets", filters={"room_id": room_id}, order_by="created_at")

    def redeem_ticket_and_insert_vote(
        self, ticket_id: str, vote: dict[str, Any]
    ) -> tuple[str, dict[str, Any] | None]:
        """Mark a ticket used only if unused and record its vote in one transaction."""
        payload = _first(
            self.db.rpc(
                "cast_ticket_vote",
                {
                    "p_ticket_id": ticket_id,
                    "p_room_id": vote["room_id"],
                    "p_candidate_id": vote["candidate_id"],
                    "p_sub_candidate_id": vote.get("sub_candidate_id"),
                    "p_voter_identifier": vote["voter_identifier"],
                },
            )
        )
        return str(payload.get("reason") or ""), payload.get("vote")

    # Votes

    def insert_vote_if_absent(self, vote: dict[str, Any]) -> dict[str, Any] | None:
        """Insert a vote; ``None`` when (room_id, voter_identifier) already voted."""
        try:
            return self.db.insert_one("votes", vote)
        except DuplicateRecordError:
            return None

    def insert_vote_within_limit(
        self, vote: dict[str, Any]
    ) -> tuple[str, dict[str, Any] | None, int]:
        """Bounded increment of the room's vote counter plus the vote insert."""
        payload = _first(
            self.db.rpc(
                "cast_limited_vote",
                {
                    "p_room_id": vote["room_id"],
                    "p_candidate_id": vote["candidate_id"],
                    "p_sub_candidate_id": vote.get("sub_candidate_id"),
                    "p_voter_identifier": vote["voter_identifier"],
                },
            )
        )
        return (
            str(payload.get("reason") or ""),
            payload.get("vote"),
            int(payload.get("vote_count") or 0),
        )

    def count_votes(self, room_id: str) -> int:
        return self.db.count("votes", {"room_id": room_id})

    def count_votes_by_candidate(self, room_id: str) -> list[dict[str, Any]]:
        """Return ``candidate_id``, ``vote_count`` and ``last_vote_at`` per candidate."""
        return self.db.rpc("vote_counts_by_candidate", {"p_room_id": room_id})

    def voter_has_voted(self, room_id: str, voter_identifier: str) -> bool:
        row = self.db.select_first(
            "votes",
            {"room_id": room_id, "voter_identifier": voter_identifier},
            columns="id",
        )
        return row is not None

    # Admins

    def get_admin(self, admin_id: str) -> dict[str, Any]:
        return self.db.select_one("admins", {"id": admin_id}, not_found=AdminNotFoundError())

    def get_admin_by_username(self, username: str) -> dict[str, Any] | None:
        return self.db.select_first("admins", {"username": username})

    def get_admin_usage(self, admin_id: str) -> tuple[int, int]:
        """Return ``(room_count, voter_count)`` for an admin."""
        payload = _first(self.db.rpc("admin_usage", {"p_admin_id": admin_id}))
        return int(payload.get("room_count") or 0), int(payload.get("voter_count") or 0)

    # Login attempts

    def record_login_attempt(
        self,
        identifier: str,
        attempt_at: datetime,
        since: datetime,
        max_failures: int,
    ) -> dict[str, Any] | None:
        """Record a provisional failed attempt unless the identifier is locked.

        Returns the inserted attempt, or ``None`` when ``max_failures`` failures
        already exist after ``since``. The count and the insert are serialized
        per identifier so concurrent logins cannot slip past the threshold.
        """
        payload = _first(
            self.db.rpc(
                "record_login_attempt",
                {
                    "p_identifier": identifier,
                    "p_attempt_at": attempt_at.isoformat(),
                    "p_since": since.isoformat(),
                    "p_max_failures": max_failures,
                },
            )
        )
        if not payload.get("allowed"):
            return None
        return {
            "id": payload.get("attempt_id"),
            "identifier": identifier,
            "attempt_at": payload.get("attempt_at"),
            "success": False,
        }

    def mark_login_succeeded(self, attempt_id: str) -> None:
        self.db.update("login_attempts", {"id": attempt_id}, {"success": True})

    def count_recent_failures(self, identifier: str, since: datetime) -> int:
        query = (
            self.db.client.table("login_attempts")
            .select("id", count="exact", head=True)
            .eq("identifier", identifier)
            .eq("success", False)
            .gt("attempt_at", since.isoformat())
        )
        return self.db.execute_count(query)

    def most_recent_attempt(self, identifier: str) -> dict[str, Any] | None:
        return self.db.select_first(
            "login_attempts",
            {"identifier": identifier},
            order_by="attempt_at",
            descending=True,
        )

    def delete_login_attempts_before(self, before: datetime) -> int:
        rows = self.db.delete_before("login_attempts", "attempt_at", before.isoformat())
        return len(rows)
