"""Pytest fixtures for backend tests."""

from __future__ import annotations

import itertools
import os
import threading
import uuid
from datetime import UTC, datetime, timedelta
from typing import Any

import pytest
from fastapi.testclient import TestClient


def _set_default_env() -> None:
    os.environ.setdefault("SUPABASE_URL", "https://example.supabase.co")
    os.environ.setdefault("SUPABASE_SERVICE_KEY", "service-key")
    os.environ.setdefault("ENCRYPTION_KEY", "0123456789abcdef0123456789abcdef")
    os.environ.setdefault("ENCRYPTION_SALT_FRONT", "salt")
    os.environ.setdefault("ENCRYPTION_SALT_BACK", "pepr")
    os.environ.setdefault("SESSION_SECRET", "test-session-secret")
    os.environ.setdefault("ENABLE_SCHEDULER", "false")


# Settings are read at import time by app.config.
_set_default_env()

from app.utils.errors import AdminNotFoundError, RoomNotFoundError  # noqa: E402

START = datetime(2025, 1, 1, 12, 0, tzinfo=UTC)


class FakeClock:
    """Manually advanced clock."""

    def __init__(self, now: datetime = START) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


class FakeStore:
    """In-memory store with the same atomicity contract as VotingStore.

    Each method holds one lock for its whole body, the way each store call
    is a single statement or a single transaction in Postgres.
    """

    def __init__(self, clock: FakeClock | None = None) -> None:
        self.clock = clock or FakeClock()
        self.lock = threading.Lock()
        self.admins: dict[str, dict[str, Any]] = {}
        self.rooms: dict[str, dict[str, Any]] = {}
        self.candidates: dict[str, dict[str, Any]] = {}
        self.sub_candidates: dict[str, dict[str, Any]] = {}
        self.tickets: dict[str, dict[str, Any]] = {}
        self.votes: list[dict[str, Any]] = []
        self.login_attempts: list[dict[str, Any]] = []
        self.close_calls = 0

    # Seeding helpers

    def add_admin(self, username: str = "admin", password: str = "", **fields: Any) -> dict[str, Any]:
        admin = {
            "id": fields.pop("id", str(uuid.uuid4())),
            "username": username,
            "password": password,
            "max_room": 10,
            "max_voters": 1000,
            "is_active": True,
            **fields,
        }
        self.admins[admin["id"]] = admin
        return dict(admin)

    def add_room(self, admin_id: str, voters_type: str = "wild_unlimited", **fields: Any) -> dict[str, Any]:
        room = {
            "id": fields.pop("id", str(uuid.uuid4())),
            "admin_id": admin_id,
            "name": "Student council",
            "voters_type": voters_type,
            "voters_limit": None,
            "session_start_time": None,
            "session_end_time": None,
            "status": "enabled",
            "publish_state": "published",
            "session_state": "open",
            "vote_count": 0,
            "created_at": self.clock().isoformat(),
            "updated_at": self.clock().isoformat(),
            **fields,
        }
        self.rooms[room["id"]] = room
        return dict(room)

    def add_candidate(self, room_id: str, name: str = "Candidate", **fields: Any) -> dict[str, Any]:
        candidate = {
            "id": fields.pop("id", str(uuid.uuid4())),
            "room_id": room_id,
            "name": name,
            "photo_url": "",
            "description": "",
            **fields,
        }
        self.candidates[candidate["id"]] = candidate
        return dict(candidate)

    def add_sub_candidate(self, candidate_id: str, name: str = "Running mate") -> dict[str, Any]:
        sub = {
            "id": str(uuid.uuid4()),
            "candidate_id": candidate_id,
            "name": name,
            "photo_url": "",
            "description": None,
        }
        self.sub_candidates[sub["id"]] = sub
        return dict(sub)

    def add_ticket(self, room_id: str, code: str, is_used: bool = False) -> dict[str, Any]:
        ticket = {
            "id": str(uuid.uuid4()),
            "room_id": room_id,
            "code": code,
            "is_used": is_used,
            "used_at": self.clock().isoformat() if is_used else None,
            "created_at": self.clock().isoformat(),
        }
        self.tickets[ticket["id"]] = ticket
        return dict(ticket)

    # Rooms

    def get_room(self, room_id: str) -> dict[str, Any]:
        with self.lock:
            room = self.rooms.get(room_id)
            if room is None:
                raise RoomNotFoundError()
            return dict(room)

    def conditional_close_session(self, room_id: str) -> bool:
        with self.lock:
            self.close_calls += 1
            room = self.rooms.get(room_id)
            if room is None or room["session_state"] != "open":
                return False
            room["session_state"] = "closed"
            return True

    def insert_room_within_quota(
        self, admin_id: str, room: dict[str, Any]
    ) -> tuple[str, dict[str, Any] | None]:
        with self.lock:
            admin = self.admins.get(admin_id)
            if admin is None:
                return "admin_not_found", None
            room_count, voter_count = self._usage(admin_id)
            if room_count >= admin["max_room"]:
                return "max_room_exceeded", None
            projected = 0
            if room.get("voters_type") == "wild_limited":
                projected = room.get("voters_limit") or 0
            if voter_count + projected > admin["max_voters"]:
                return "max_voters_exceeded", None
            fields = {key: value for key, value in room.items() if key != "admin_id"}
            return "ok", self.add_room(admin_id, **fields)

    # Candidates

    def get_candidate(self, room_id: str, candidate_id: str) -> dict[str, Any] | None:
        candidate = self.candidates.get(candidate_id)
        if candidate is None or candidate["room_id"] != room_id:
            return None
        return dict(candidate)

    def get_sub_candidate(self, candidate_id: str, sub_candidate_id: str) -> dict[str, Any] | None:
        sub = self.sub_candidates.get(sub_candidate_id)
        if sub is None or sub["candidate_id"] != candidate_id:
            return None
        return dict(sub)

    def list_candidates(self, room_id: str) -> list[dict[str, Any]]:
        rows = []
        for candidate in self.candidates.values():
            if candidate["room_id"] != room_id:
                continue
            subs = [dict(s) for s in self.sub_candidates.values() if s["candidate_id"] == candidate["id"]]
            rows.append({**candidate, "sub_candidates": subs})
        return rows

    # Tickets

    def find_ticket_by_code(self, room_id: str, code: str) -> dict[str, Any] | None:
        with self.lock:
            for ticket in self.tickets.values():
                if ticket["room_id"] == room_id and ticket["code"] == code:
                    return dict(ticket)
        return None

    def insert_tickets_within_quota(
        self, room_id: str, codes: list[str]
    ) -> tuple[str, list[dict[str, Any]]]:
        with self.lock:
            room = self.rooms.get(room_id)
            if room is None:
                return "room_not_found", []
            admin = self.admins.get(room["admin_id"])
            if admin is None:
                return "admin_not_found", []
            _, voter_count = self._usage(admin["id"])
            if voter_count + len(codes) > admin["max_voters"]:
                return "max_voters_exceeded", []
            taken = {t["code"] for t in self.tickets.values() if t["room_id"] == room_id}
            if taken & set(codes) or len(set(codes)) != len(codes):
                return "ticket_duplicate", []
            return "ok", [self.add_ticket(room_id, code) for code in codes]

    def list_tickets(self, room_id: str) -> list[dict[str, Any]]:
        return [dict(t) for t in self.tickets.values() if t["room_id"] == room_id]

    def redeem_ticket_and_insert_vote(
        self, ticket_id: str, vote: dict[str, Any]
    ) -> tuple[str, dict[str, Any] | None]:
        with self.lock:
            ticket = self.tickets.get(ticket_id)
            if ticket is None or ticket["room_id"] != vote["room_id"]:
                return "ticket_not_found", None
            if ticket["is_used"]:
                return "ticket_already_used", None
            if self._has_voted(vote["room_id"], vote["voter_identifier"]):
                return "voter_already_voted", None
            ticket["is_used"] = True
            ticket["used_at"] = self.clock().isoformat()
            return "ok", self._append_vote(vote)

    # Votes

    def insert_vote_if_absent(self, vote: dict[str, Any]) -> dict[str, Any] | None:
        with self.lock:
            if self._has_voted(vote["room_id"], vote["voter_identifier"]):
                return None
            return self._append_vote(vote)

    def insert_vote_within_limit(
        self, vote: dict[str, Any]
    ) -> tuple[str, dict[str, Any] | None, int]:
        with self.lock:
            room = self.rooms[vote["room_id"]]
            if room["vote_count"] >= room["voters_limit"]:
                return "vote_limit_reached", None, room["vote_count"]
            if self._has_voted(vote["room_id"], vote["voter_identifier"]):
                return "voter_already_voted", None, room["vote_count"]
            room["vote_count"] += 1
            return "ok", self._append_vote(vote), room["vote_count"]

    def count_votes(self, room_id: str) -> int:
        with self.lock:
            return sum(1 for v in self.votes if v["room_id"] == room_id)

    def count_votes_by_candidate(self, room_id: str) -> list[dict[str, Any]]:
        with self.lock:
            counts: dict[str, dict[str, Any]] = {}
            for vote in self.votes:
                if vote["room_id"] != room_id:
                    continue
                row = counts.setdefault(
                    vote["candidate_id"],
                    {"candidate_id": vote["candidate_id"], "vote_count": 0, "last_vote_at": None},
                )
                row["vote_count"] += 1
                row["last_vote_at"] = vote["created_at"]
            return list(counts.values())

    def voter_has_voted(self, room_id: str, voter_identifier: str) -> bool:
        with self.lock:
            return self._has_voted(room_id, voter_identifier)

    # Admins

    def get_admin(self, admin_id: str) -> dict[str, Any]:
        admin = self.admins.get(admin_id)
        if admin is None:
            raise AdminNotFoundError()
        return dict(admin)

    def get_admin_by_username(self, username: str) -> dict[str, Any] | None:
        for admin in self.admins.values():
            if admin["username"] == username:
                return dict(admin)
        return None

    def get_admin_usage(self, admin_id: str) -> tuple[int, int]:
        with self.lock:
            return self._usage(admin_id)

    # Login attempts

    def record_login_attempt(
        self,
        identifier: str,
        attempt_at: datetime,
        since: datetime,
        max_failures: int,
    ) -> dict[str, Any] | None:
        with self.lock:
            if self._failures(identifier, since) >= max_failures:
                return None
            attempt = {
                "id": str(uuid.uuid4()),
                "identifier": identifier,
                "attempt_at": attempt_at,
                "success": False,
            }
            self.login_attempts.append(attempt)
            return dict(attempt)

    def mark_login_succeeded(self, attempt_id: str) -> None:
        with self.lock:
            for attempt in self.login_attempts:
                if attempt["id"] == attempt_id:
                    attempt["success"] = True

    def count_recent_failures(self, identifier: str, since: datetime) -> int:
        with self.lock:
            return self._failures(identifier, since)

    def most_recent_attempt(self, identifier: str) -> dict[str, Any] | None:
        with self.lock:
            mine = [a for a in self.login_attempts if a["identifier"] == identifier]
            return dict(max(mine, key=lambda a: a["attempt_at"])) if mine else None

    def delete_login_attempts_before(self, before: datetime) -> int:
        with self.lock:
            kept = [a for a in self.login_attempts if a["attempt_at"] >= before]
            removed = len(self.login_attempts) - len(kept)
            self.login_attempts = kept
            return removed

    # Internals, called with the lock held

    def _has_voted(self, room_id: str, voter_identifier: str) -> bool:
        return any(
            v["room_id"] == room_id and v["voter_identifier"] == voter_identifier for v in self.votes
        )

    def _append_vote(self, vote: dict[str, Any]) -> dict[str, Any]:
        recorded = {
            "id": str(uuid.uuid4()),
            "sub_candidate_id": None,
            **vote,
            "created_at": self.clock().isoformat(),
        }
        self.votes.append(recorded)
        return dict(recorded)

    def _failures(self, identifier: str, since: datetime) -> int:
        return sum(
            1
            for a in self.login_attempts
            if a["identifier"] == identifier and not a["success"] and a["attempt_at"] > since
        )

    def _usage(self, admin_id: str) -> tuple[int, int]:
        rooms = [r for r in self.rooms.values() if r["admin_id"] == admin_id]
        voters = 0
        for room in rooms:
            if room["voters_type"] == "custom_tickets":
                voters += sum(1 for t in self.tickets.values() if t["room_id"] == room["id"])
            elif room["voters_type"] == "wild_limited":
                voters += room["voters_limit"] or 0
        return len(rooms), voters


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store(clock: FakeClock) -> FakeStore:
    return FakeStore(clock)


@pytest.fixture
def admin(store: FakeStore) -> dict[str, Any]:
    return store.add_admin()


@pytest.fixture
def voter_ids():
    """Deterministic voter identifier minter."""
    counter = itertools.count(1)
    return lambda: f"voter_{next(counter):032x}"


@pytest.fixture(scope="session")
def client() -> TestClient:
    """Create a FastAPI test client."""
    from app.main import app

    return TestClient(app)
