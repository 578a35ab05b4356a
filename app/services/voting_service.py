"""Vote casting and tallies."""

from __future__ import annotations

from collections.abc import Callable
from functools import partial
from typing import Any

from app.services.eligibility import VoterEligibilityResolver, ensure_room_accepting
from app.services.room_session import (
    CUSTOM_TICKETS,
    WILD_LIMITED,
    RoomSessionStateMachine,
    is_session_active,
    limit_reached,
)
from app.services.store import VotingStore
from app.services.ticket_service import TicketLedger
from app.services.vote_ledger import VoteLedger
from app.utils.crypto import MIN_VOTER_ID_BYTES, generate_voter_id
from app.utils.errors import (
    AppError,
    CandidateNotFoundError,
    SessionClosedError,
    SessionNotActiveError,
    SubCandidateNotFoundError,
    VoteLimitReachedError,
)
from app.utils.time import Clock, now_utc


class VotingService:
    """Compose the ledgers, session state and eligibility policies."""

    def __init__(
        self,
        store: VotingStore,
        clock: Clock = now_utc,
        mint_voter_id: Callable[[], str] | None = None,
        voter_id_entropy_bytes: int = MIN_VOTER_ID_BYTES,
    ) -> None:
        self.store = store
        self.clock = clock
        self.sessions = RoomSessionStateMachine(store)
        self.tickets = TicketLedger(store)
        self.votes = VoteLedger(store)
        self.resolver = VoterEligibilityResolver(
            tickets=self.tickets,
            votes=self.votes,
            sessions=self.sessions,
            clock=clock,
            mint_voter_id=mint_voter_id or partial(generate_voter_id, voter_id_entropy_bytes),
        )

    def get_voter_room_info(self, room_id: str) -> dict[str, Any]:
        """Return what a voter needs to render the ballot.

        Disabled and unpublished rooms are not shown to voters. An inactive
        session, including a wild_limited room at its limit, still shows the
        ballot with ``is_active`` False.
        """
        room = self.store.get_room(room_id)
        message = ""
        try:
            ensure_room_accepting(room)
            if not is_session_active(room, self.clock()):
                raise SessionNotActiveError()
            if limit_reached(room, self.votes.total_count(room_id)):
                raise VoteLimitReachedError()
        except AppError as exc:
            if exc.code not in {"SESSION_CLOSED", "SESSION_NOT_ACTIVE", "VOTE_LIMIT_REACHED"}:
                raise
            message = exc.message

        return {
            "room": room,
            "candidates": self._candidates(room_id),
            "requires_ticket": room["voters_type"] == CUSTOM_TICKETS,
            "is_active": not message,
            "message": message,
        }

    def cast_vote(
        self,
        room_id: str,
        candidate_id: str,
        sub_candidate_id: str | None = None,
        ticket_code: str | None = None,
    ) -> dict[str, Any]:
        """Cast one vote in a room under the room's eligibility policy."""
        room = self.store.get_room(room_id)
        try:
            ensure_room_accepting(room)
        except SessionClosedError:
            # A wild_limited room closed by its ceiling reports the ceiling.
            if limit_reached(room, self.votes.total_count(room_id)):
                raise VoteLimitReachedError() from None
            raise
        self._ensure_candidate(room_id, candidate_id, sub_candidate_id)

        admission = self.resolver.resolve(room, ticket_code)
        vote = {
            "room_id": room_id,
            "candidate_id": candidate_id,
            "sub_candidate_id": sub_candidate_id,
            "voter_identifier": admission.voter_identifier,
        }

        voters_type = room["voters_type"]
        if voters_type == CUSTOM_TICKETS:
            return self.tickets.redeem(admission.ticket or {}, vote)

        if voters_type == WILD_LIMITED:
            try:
                recorded, total = self.votes.record_within_limit(vote)
            except VoteLimitReachedError:
                self.sessions.close(room_id, reason="vote limit already reached")
                raise
            self.sessions.reconcile(room, total)
            return recorded

        return self.votes.record(vote)

    def get_realtime_tally(self, room_id: str) -> dict[str, Any]:
        """Counts for every candidate, including zero, in candidate id order."""
        room = self.store.get_room(room_id)
        counts = {row["candidate_id"]: row for row in self.votes.realtime_counts(room_id)}
        candidates = sorted(self._candidates(room_id), key=lambda item: str(item["id"]))

        vote_data = []
        for candidate in candidates:
            candidate_key = str(candidate["id"])
            row = counts.get(candidate_key, {})
            vote_data.append(
                {
                    "candidate_id": candidate_key,
                    "candidate_name": candidate.get("name", ""),
                    "vote_count": int(row.get("vote_count", 0)),
                }
            )

        return {
            "room_id": str(room["id"]),
            "room_name": room.get("name", ""),
            "session_state": room.get("session_state"),
            "vote_data": vote_data,
            "total_votes": self.votes.total_count(room_id),
            "updated_at": self.clock(),
        }

    def get_tallies(self, room_id: str) -> dict[str, Any]:
        """Historical per-candidate counts, highest first."""
        room = self.store.get_room(room_id)
        names = {
            str(candidate["id"]): candidate.get("name", "")
            for candidate in self._candidates(room_id)
        }
        counts = [
            {**row, "candidate_name": names.get(row["candidate_id"], "")}
            for row in self.votes.counts_by_candidate(room_id)
        ]
        return {
            "room_id": str(room["id"]),
            "room_name": room.get("name", ""),
            "counts": counts,
            "total_votes": self.votes.total_count(room_id),
        }

    def _ensure_candidate(
        self, room_id: str, candidate_id: str, sub_candidate_id: str | None
    ) -> None:
        if self.store.get_candidate(room_id, candidate_id) is None:
            raise CandidateNotFoundError()
        if sub_candidate_id and self.store.get_sub_candidate(candidate_id, sub_candidate_id) is None:
            raise SubCandidateNotFoundError()

    def _candidates(self, room_id: str) -> list[dict[str, Any]]:
        candidates = []
        for row in self.store.list_candidates(room_id):
            candidate = dict(row)
            candidate["sub_candidates"] = list(candidate.get("sub_candidates") or [])
            candidates.append(candidate)
        return candidates
