"""Per-room-type voter eligibility policies."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from app.services.room_session import (
    CUSTOM_TICKETS,
    PUBLISH_PUBLISHED,
    SESSION_OPEN,
    STATUS_ENABLED,
    WILD_LIMITED,
    WILD_UNLIMITED,
    RoomSessionStateMachine,
    is_session_active,
    limit_reached,
)
from app.services.ticket_service import TicketLedger, normalize_code
from app.services.vote_ledger import VoteLedger
from app.utils.errors import (
    InvalidInputError,
    RoomDisabledError,
    RoomNotPublishedError,
    SessionClosedError,
    SessionNotActiveError,
    TicketRequiredError,
    VoteLimitReachedError,
    VoterAlreadyVotedError,
)
from app.utils.time import Clock


@dataclass(frozen=True)
class Admission:
    """Outcome of a successful eligibility check."""

    voter_identifier: str
    ticket: dict[str, Any] | None = None


def ensure_room_accepting(room: dict[str, Any]) -> None:
    """Checks shared by every policy, in the order voters should see them."""
    if room.get("status") != STATUS_ENABLED:
        raise RoomDisabledError()
    if room.get("publish_state") != PUBLISH_PUBLISHED:
        raise RoomNotPublishedError()
    if room.get("session_state") != SESSION_OPEN:
        raise SessionClosedError()


class VoterEligibilityResolver:
    """Decide whether a vote attempt is admissible and who the voter is.

    The checks here read state that concurrent requests can change. They
    reject early; the ledgers' atomic writes are what enforce the invariants.
    """

    def __init__(
        self,
        tickets: TicketLedger,
        votes: VoteLedger,
        sessions: RoomSessionStateMachine,
        clock: Clock,
        mint_voter_id: Callable[[], str],
    ) -> None:
        self.tickets = tickets
        self.votes = votes
        self.sessions = sessions
        self.clock = clock
        self.mint_voter_id = mint_voter_id
        self._policies: dict[str, Callable[[dict[str, Any], str | None], Admission]] = {
            CUSTOM_TICKETS: self._custom_tickets,
            WILD_LIMITED: self._wild_limited,
            WILD_UNLIMITED: self._wild_unlimited,
        }

    def resolve(self, room: dict[str, Any], ticket_code: str | None = None) -> Admission:
        policy = self._policies.get(room.get("voters_type"))
        if policy is None:
            raise InvalidInputError("Invalid voters type", code="INVALID_VOTERS_TYPE")
        return policy(room, ticket_code)

    def _custom_tickets(self, room: dict[str, Any], ticket_code: str | None) -> Admission:
        code = normalize_code(ticket_code)
        if not code:
            raise TicketRequiredError()

        room_id = str(room["id"])
        ticket = self.tickets.verify(room_id, code)
        if self.votes.has_voted(room_id, code):
            raise VoterAlreadyVotedError()
        return Admission(voter_identifier=code, ticket=ticket)

    def _wild_limited(self, room: dict[str, Any], _ticket_code: str | None) -> Admission:
        room_id = str(room["id"])
        total = self.votes.total_count(room_id)
        if limit_reached(room, total):
            # Heals a stale open session_state even though this vote is rejected.
            self.sessions.close(room_id, reason="vote limit already reached")
            raise VoteLimitReachedError()
        return Admission(voter_identifier=self.mint_voter_id())

    def _wild_unlimited(self, room: dict[str, Any], _ticket_code: str | None) -> Admission:
        if not is_session_active(room, self.clock()):
            raise SessionNotActiveError()
        return Admission(voter_identifier=self.mint_voter_id())
