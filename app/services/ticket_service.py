"""Ticket issuance, lookup, and single-use redemption."""

from __future__ import annotations

import logging
from typing import Any

from app.services.quota_service import QuotaGuard
from app.services.room_session import CUSTOM_TICKETS
from app.services.store import VotingStore
from app.utils.errors import (
    InvalidInputError,
    InvalidTicketError,
    RoomNotFoundError,
    ServiceUnavailableError,
    TicketAlreadyUsedError,
    TicketDuplicateError,
    VoterAlreadyVotedError,
)

logger = logging.getLogger(__name__)


def normalize_code(code: str | None) -> str:
    """Strip surrounding whitespace; codes are otherwise case-sensitive."""
    return (code or "").strip()


class TicketLedger:
    """Own ticket code uniqueness and at-most-once redemption."""

    def __init__(self, store: VotingStore, quota: QuotaGuard | None = None) -> None:
        self.store = store
        self.quota = quota or QuotaGuard(store)

    def _ticket_room(self, room_id: str) -> dict[str, Any]:
        room = self.store.get_room(room_id)
        if room["voters_type"] != CUSTOM_TICKETS:
            raise InvalidInputError(
                "Tickets can only be issued for custom_tickets rooms",
                code="INVALID_VOTERS_TYPE",
            )
        return room

    def issue(self, room_id: str, code: str) -> dict[str, Any]:
        """Issue one ticket code for a custom_tickets room."""
        return self.issue_bulk(room_id, [code])[0]

    def issue_bulk(self, room_id: str, codes: list[str]) -> list[dict[str, Any]]:
        """Issue every code or none of them."""
        normalized = [normalize_code(code) for code in codes]
        if not normalized:
            raise InvalidInputError("At least one ticket code is required")
        if any(not code for code in normalized):
            raise InvalidInputError("Ticket code cannot be empty")
        if len(set(normalized)) != len(normalized):
            raise TicketDuplicateError()

        room = self._ticket_room(room_id)
        self.quota.check_voter_quota(str(room["admin_id"]), len(normalized))

        reason, tickets = self.store.insert_tickets_within_quota(room_id, normalized)
        if reason == "ticket_duplicate":
            raise TicketDuplicateError()
        if reason == "room_not_found":
            raise RoomNotFoundError()
        self.quota.raise_for_reason(reason)

        logger.info("Issued %s ticket(s) for room %s", len(tickets), room_id)
        return tickets

    def verify(self, room_id: str, code: str) -> dict[str, Any]:
        """Return the unused ticket for ``code`` without redeeming it."""
        ticket = self.store.find_ticket_by_code(room_id, normalize_code(code))
        if ticket is None:
            raise InvalidTicketError()
        if ticket.get("is_used"):
            raise TicketAlreadyUsedError()
        return ticket

    def list_tickets(self, room_id: str) -> list[dict[str, Any]]:
        self._ticket_room(room_id)
        return self.store.list_tickets(room_id)

    def redeem(self, ticket: dict[str, Any], vote: dict[str, Any]) -> dict[str, Any]:
        """Mark ``ticket`` used and record ``vote`` as one all-or-nothing write.

        Of any number of concurrent calls for the same ticket exactly one
        succeeds; the rest raise TicketAlreadyUsedError.
        """
        reason, recorded = self.store.redeem_ticket_and_insert_vote(str(ticket["id"]), vote)
        if reason == "ok" and recorded:
            return recorded
        if reason == "ticket_already_used":
            logger.warning("Ticket redemption lost a race in room %s", vote["room_id"])
            raise TicketAlreadyUsedError()
        if reason == "voter_already_voted":
            raise VoterAlreadyVotedError()
        if reason == "ticket_not_found":
            raise InvalidTicketError()
        raise ServiceUnavailableError("Ticket redemption failed")
