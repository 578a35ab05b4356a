"""Application settings loaded from environment variables."""

from __future__ import annotations

from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application configuration.

    Values are read from environment variables (or a `.env` file).
    """

    # Supabase
    supabase_url: str
    supabase_service_key: str
    supabase_http_max_connections: int = 100
    supabase_http_max_keepalive_connections: int = 50
    supabase_postgrest_timeout_seconds: int = 30

    # App
    app_name: str = "Pemilo API"
    app_version: str = "1.0.0"
    log_level: str = "INFO"
    allowed_origins: str = "*"
    enable_scheduler: bool = True

    # Scheduling
    timezone: str = "UTC"

    # Performance tuning
    slow_request_log_threshold_ms: int = 0
    slow_query_log_threshold_ms: int = 0

    # Credentials
    encryption_key: str
    encryption_salt_front: str
    encryption_salt_back: str
    session_secret: str
    session_ttl_hours: int = 24

    # Login throttling
    login_max_failed_attempts: int = 3
    login_lockout_minutes: int = 5
    login_attempt_retention_hours: int = 24

    # Voting
    voter_id_entropy_bytes: int = 16

    @field_validator("encryption_key")
    @classmethod
    def _check_encryption_key(cls, value: str) -> str:
        if len(value) != 32:
            raise ValueError("ENCRYPTION_KEY must be exactly 32 characters for AES-256")
        return value

    @field_validator("voter_id_entropy_bytes")
    @classmethod
    def _check_voter_id_entropy(cls, value: int) -> int:
        if value < 16:
            raise ValueError("VOTER_ID_ENTROPY_BYTES must be at least 16")
        return value

    @property
    def origins_list(self) -> list[str]:
        """Parse comma-separated ALLOWED_ORIGINS into a list."""
        return [o.strip() for o in self.allowed_origins.split(",") if o.strip()]

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


settings = Settings()  # type: ignore[call-arg]
