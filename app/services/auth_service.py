"""Admin login with failed-attempt lockout."""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Any

from app.services.store import VotingStore
from app.utils.crypto import (
    CipherError,
    decrypt_password,
    encrypt_password,
    make_session_token,
    verify_password,
)
from app.utils.errors import (
    AdminInactiveError,
    InvalidCredentialsError,
    InvalidInputError,
    RateLimitedError,
)
from app.utils.time import Clock, now_utc, parse_timestamp

logger = logging.getLogger(__name__)

MAX_FAILED_ATTEMPTS = 3
LOCKOUT_WINDOW = timedelta(minutes=5)


class LoginThrottle:
    """Sliding-window lockout on failed logins per identifier.

    Failures are counted over the trailing window measured back from now,
    excluding its opening instant, and the remaining wait is measured from
    the most recent attempt. Both checks end the lockout at the same moment.
    """

    def __init__(
        self,
        store: VotingStore,
        clock: Clock = now_utc,
        max_failures: int = MAX_FAILED_ATTEMPTS,
        window: timedelta = LOCKOUT_WINDOW,
    ) -> None:
        self.store = store
        self.clock = clock
        self.max_failures = max_failures
        self.window = window

    def remaining_lockout(self, identifier: str) -> timedelta | None:
        """Return how long ``identifier`` stays locked, or None when it may try."""
        now = self.clock()
        failures = self.store.count_recent_failures(identifier, now - self.window)
        if failures < self.max_failures:
            return None

        last_attempt = self.store.most_recent_attempt(identifier)
        last_at = parse_timestamp(last_attempt.get("attempt_at")) if last_attempt else None
        if last_at is None:
            return None

        remaining = self.window - (now - last_at)
        return remaining if remaining > timedelta(0) else None

    def begin(self, identifier: str) -> dict[str, Any]:
        """Admit one login attempt, recorded as failed until ``succeeded``."""
        remaining = self.remaining_lockout(identifier)
        if remaining is not None:
            logger.info(
                "Login locked for %s, %.0fs remaining", identifier, remaining.total_seconds()
            )
            raise RateLimitedError(remaining)

        now = self.clock()
        attempt = self.store.record_login_attempt(
            identifier,
            attempt_at=now,
            since=now - self.window,
            max_failures=self.max_failures,
        )
        if attempt is None:
            # A concurrent attempt pushed the identifier over the threshold.
            logger.info("Login lockout engaged for %s", identifier)
            raise RateLimitedError(self.remaining_lockout(identifier) or self.window)
        return attempt

    def succeeded(self, attempt: dict[str, Any]) -> None:
        self.store.mark_login_succeeded(str(attempt["id"]))


class AuthService:
    """Authenticate admins and issue session tokens."""

    def __init__(
        self,
        store: VotingStore,
        encryption_key: str,
        encryption_salt_front: str,
        encryption_salt_back: str,
        session_secret: str,
        session_ttl: timedelta = timedelta(hours=24),
        clock: Clock = now_utc,
        throttle: LoginThrottle | None = None,
    ) -> None:
        self.store = store
        self.encryption_key = encryption_key
        self.encryption_salt_front = encryption_salt_front
        self.encryption_salt_back = encryption_salt_back
        self.session_secret = session_secret
        self.session_ttl = session_ttl
        self.clock = clock
        self.throttle = throttle or LoginThrottle(store, clock=clock)

    def login(self, username: str, encrypted_password: str) -> dict[str, Any]:
        """Verify credentials and return the admin, a session token and its expiry.

        Raises:
            RateLimitedError: the username is locked out; credentials are not checked.
            InvalidCredentialsError: unknown username or wrong password.
            AdminInactiveError: the admin account is disabled.
        """
        identifier = username.strip()
        if not identifier or not encrypted_password:
            raise InvalidInputError("Username and password are required")

        attempt = self.throttle.begin(identifier)

        admin = self.store.get_admin_by_username(identifier)
        if admin is None:
            raise InvalidCredentialsError()
        if not admin.get("is_active", False):
            raise AdminInactiveError()
        if not self._password_matches(admin, encrypted_password):
            raise InvalidCredentialsError()

        self.throttle.succeeded(attempt)

        issued_at = self.clock()
        expires_at = issued_at + self.session_ttl
        token = make_session_token(admin, issued_at, expires_at, self.session_secret)
        logger.info("Admin %s logged in", admin["id"])
        return {"admin": admin, "token": token, "expires_at": expires_at}

    def _password_matches(self, admin: dict[str, Any], encrypted_password: str) -> bool:
        # Stored hashes cover the deterministic-salt ciphertext, so re-encrypt
        # whatever salt the client used into that canonical form.
        try:
            plain = decrypt_password(encrypted_password, self.encryption_key)
        except CipherError:
            return False
        canonical = encrypt_password(
            plain,
            self.encryption_key,
            self.encryption_salt_front,
            self.encryption_salt_back,
        )
        return verify_password(str(admin.get("password") or ""), canonical)
