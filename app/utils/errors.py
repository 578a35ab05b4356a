"""Custom exception hierarchy for the Pemilo API."""

from __future__ import annotations

import math
from datetime import timedelta
from typing import Any


class AppError(Exception):
    """Base application error with a stable machine-readable code."""

    def __init__(self, message: str, code: str, status_code: int = 400) -> None:
        self.message = message
        self.code = code
        self.status_code = status_code
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Serialize the error in the API standard shape."""
        return {"error": self.message, "code": self.code}


class NotFoundError(AppError):
    """Raised when a requested resource does not exist."""

    def __init__(self, resource: str, code: str = "NOT_FOUND") -> None:
        super().__init__(message=f"{resource} not found", code=code, status_code=404)


class ForbiddenError(AppError):
    """Raised when the caller lacks permission for the action."""

    def __init__(self, reason: str = "You don't have permission", code: str = "FORBIDDEN") -> None:
        super().__init__(message=reason, code=code, status_code=403)


class ConflictError(AppError):
    """Raised when the current state of a record forbids the operation."""

    def __init__(self, reason: str, code: str = "CONFLICT") -> None:
        super().__init__(message=reason, code=code, status_code=409)


class DuplicateRecordError(ConflictError):
    """Raised by the store when a unique constraint rejects a write."""

    def __init__(self, reason: str = "Record already exists") -> None:
        super().__init__(reason, code="DUPLICATE")


class UnauthorizedError(AppError):
    """Raised when the caller is not authenticated."""

    def __init__(self, reason: str = "Unauthorized", code: str = "UNAUTHORIZED") -> None:
        super().__init__(message=reason, code=code, status_code=401)


class InvalidInputError(AppError):
    """Raised for request payload or parameter validation issues."""

    def __init__(self, reason: str, code: str = "INVALID_INPUT") -> None:
        super().__init__(message=reason, code=code, status_code=422)


class QuotaExceededError(AppError):
    """Raised when an admin would exceed a room or voter ceiling."""

    def __init__(self, reason: str, code: str) -> None:
        super().__init__(message=reason, code=code, status_code=403)


class RateLimitedError(AppError):
    """Raised while an identifier is locked out after repeated failed logins."""

    def __init__(self, retry_after: timedelta) -> None:
        self.retry_after = max(retry_after, timedelta(0))
        super().__init__(
            message=f"Too many failed login attempts, try again in {self.retry_after_seconds}s",
            code="RATE_LIMIT_EXCEEDED",
            status_code=429,
        )

    @property
    def retry_after_seconds(self) -> int:
        """Remaining lockout rounded up to whole seconds."""
        return math.ceil(self.retry_after.total_seconds())

    def to_dict(self) -> dict[str, Any]:
        payload = super().to_dict()
        payload["retry_after_seconds"] = self.retry_after_seconds
        return payload


class ServiceUnavailableError(AppError):
    """Raised when the store or the credential cipher cannot be reached."""

    def __init__(self, reason: str = "Service temporarily unavailable") -> None:
        super().__init__(message=reason, code="UNAVAILABLE", status_code=503)


class RoomNotFoundError(NotFoundError):
    def __init__(self) -> None:
        super().__init__("Room", code="ROOM_NOT_FOUND")


class CandidateNotFoundError(NotFoundError):
    def __init__(self) -> None:
        super().__init__("Candidate", code="CANDIDATE_NOT_FOUND")


class SubCandidateNotFoundError(NotFoundError):
    def __init__(self) -> None:
        super().__init__("Sub-candidate", code="SUB_CANDIDATE_NOT_FOUND")


class AdminNotFoundError(NotFoundError):
    def __init__(self) -> None:
        super().__init__("Admin", code="ADMIN_NOT_FOUND")


class InvalidTicketError(NotFoundError):
    """Raised when a ticket code does not resolve to a ticket in the room."""

    def __init__(self) -> None:
        super().__init__("Ticket", code="INVALID_TICKET")


class TicketRequiredError(InvalidInputError):
    def __init__(self) -> None:
        super().__init__("Ticket code is required for this room", code="TICKET_REQUIRED")


class RoomDisabledError(ConflictError):
    def __init__(self) -> None:
        super().__init__("Room is disabled", code="ROOM_DISABLED")


class RoomNotPublishedError(ConflictError):
    def __init__(self) -> None:
        super().__init__("Room is not published", code="ROOM_NOT_PUBLISHED")


class SessionClosedError(ConflictError):
    def __init__(self) -> None:
        super().__init__("Voting session is closed", code="SESSION_CLOSED")


class SessionNotActiveError(ConflictError):
    def __init__(self) -> None:
        super().__init__("Voting session is not active", code="SESSION_NOT_ACTIVE")


class VoteLimitReachedError(ConflictError):
    def __init__(self) -> None:
        super().__init__("Vote limit has been reached for this room", code="VOTE_LIMIT_REACHED")


class VoterAlreadyVotedError(ConflictError):
    def __init__(self) -> None:
        super().__init__("Voter has already voted in this room", code="VOTER_ALREADY_VOTED")


class TicketAlreadyUsedError(ConflictError):
    def __init__(self) -> None:
        super().__init__("Ticket has already been used", code="TICKET_ALREADY_USED")


class TicketDuplicateError(ConflictError):
    def __init__(self) -> None:
        super().__init__("Ticket code already exists in this room", code="TICKET_DUPLICATE")


class MaxRoomExceededError(QuotaExceededError):
    def __init__(self) -> None:
        super().__init__("Maximum number of rooms reached", code="MAX_ROOM_EXCEEDED")


class MaxVotersExceededError(QuotaExceededError):
    def __init__(self) -> None:
        super().__init__("Maximum number of voters would be exceeded", code="MAX_VOTERS_EXCEEDED")


class InvalidCredentialsError(UnauthorizedError):
    def __init__(self) -> None:
        super().__init__("Invalid username or password", code="INVALID_CREDENTIALS")


class AdminInactiveError(ForbiddenError):
    def __init__(self) -> None:
        super().__init__("Admin account is inactive", code="ADMIN_INACTIVE")
