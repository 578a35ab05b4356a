"""APScheduler setup and job registration."""

from __future__ import annotations

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from app.config import settings
from app.jobs.login_attempt_cleanup import login_attempt_cleanup

scheduler = AsyncIOScheduler(timezone=settings.timezone)


def register_jobs() -> None:
    """Register all periodic jobs if not already present."""
    if scheduler.get_job("login_attempt_cleanup") is None:
        scheduler.add_job(
            login_attempt_cleanup,
            CronTrigger(minute=0, timezone=settings.timezone),
            id="login_attempt_cleanup",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
