"""Login attempt retention job."""

from __future__ import annotations

import logging
from datetime import timedelta

from app.config import settings
from app.services.store import VotingStore
from app.utils.supabase_client import get_service_client
from app.utils.time import now_utc

logger = logging.getLogger(__name__)


async def login_attempt_cleanup() -> None:
    """Delete login attempts older than the retention horizon."""
    store = VotingStore(get_service_client())
    before = now_utc() - timedelta(hours=settings.login_attempt_retention_hours)
    removed = store.delete_login_attempts_before(before)
    logger.info("login_attempt_cleanup removed %s attempts", removed)
