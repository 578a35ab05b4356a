"""Background job modules for periodic maintenance tasks."""

from app.jobs.login_attempt_cleanup import login_attempt_cleanup

__all__ = [
    "login_attempt_cleanup",
]
