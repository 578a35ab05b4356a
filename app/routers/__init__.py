"""API router package."""

from app.routers import admin, auth, tickets, voting

__all__ = [
    "admin",
    "auth",
    "tickets",
    "voting",
]
