"""Append-only vote records and per-room counting."""

from __future__ import annotations

import logging
from typing import Any

from app.services.store import VotingStore
from app.utils.errors import (
    ServiceUnavailableError,
    VoteLimitReachedError,
    VoterAlreadyVotedError,
)

logger = logging.getLogger(__name__)


class VoteLedger:
    """Record votes under the (room_id, voter_identifier) unique index."""

    def __init__(self, store: VotingStore) -> None:
        self.store = store

    def record(self, vote: dict[str, Any]) -> dict[str, Any]:
        """Append a vote; a second vote for the same identifier is rejected."""
        recorded = self.store.insert_vote_if_absent(vote)
        if recorded is None:
            raise VoterAlreadyVotedError()
        return recorded

    def record_within_limit(self, vote: dict[str, Any]) -> tuple[dict[str, Any], int]:
        """Append a vote to a wild_limited room without exceeding its limit.

        Returns the recorded vote and the room's vote count including it.
        """
        reason, recorded, total = self.store.insert_vote_within_limit(vote)
        if reason == "ok" and recorded:
            return recorded, total
        if reason == "vote_limit_reached":
            logger.warning("Vote rejected at the limit in room %s", vote["room_id"])
            raise VoteLimitReachedError()
        if reason == "voter_already_voted":
            raise VoterAlreadyVotedError()
        raise ServiceUnavailableError("Vote could not be recorded")

    def has_voted(self, room_id: str, voter_identifier: str) -> bool:
        return self.store.voter_has_voted(room_id, voter_identifier)

    def total_count(self, room_id: str) -> int:
        return self.store.count_votes(room_id)

    def counts_by_candidate(self, room_id: str) -> list[dict[str, Any]]:
        """Per-candidate counts, highest first."""
        rows = self._counts(room_id)
        return sorted(rows, key=lambda row: (-row["vote_count"], row["candidate_id"]))

    def realtime_counts(self, room_id: str) -> list[dict[str, Any]]:
        """Per-candidate counts in candidate id order, stable across polls."""
        return sorted(self._counts(room_id), key=lambda row: row["candidate_id"])

    def _counts(self, room_id: str) -> list[dict[str, Any]]:
        return [
            {
                "candidate_id": str(row["candidate_id"]),
                "vote_count": int(row.get("vote_count") or 0),
                "last_vote_at": row.get("last_vote_at"),
            }
            for row in self.store.count_votes_by_candidate(room_id)
        ]
