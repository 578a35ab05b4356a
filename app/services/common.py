"""Shared Supabase data access helpers."""

from __future__ import annotations

import logging
import time
from typing import Any

import httpx
from postgrest import APIError

from app.config import settings
from app.utils.errors import DuplicateRecordError, NotFoundError, ServiceUnavailableError
from supabase import Client

logger = logging.getLogger(__name__)

UNIQUE_VIOLATION = "23505"


def is_unique_violation(exc: APIError) -> bool:
    """Return True when a write failed on a unique index."""
    message = str(getattr(exc, "message", "")).lower()
    code = str(getattr(exc, "code", "")).lower()
    return code == UNIQUE_VIOLATION or "duplicate key value" in message


class SupabaseService:
    """Thin helper wrapper around a Supabase client."""

    def __init__(self, client: Client) -> None:
        self.client = client

    def execute(self, query, default: Any = None) -> Any:
        """Execute a Supabase query and normalize API errors."""
        started = time.perf_counter()
        try:
            response = query.execute()
        except APIError as exc:
            if is_unique_violation(exc):
                raise DuplicateRecordError() from exc
            logger.error("Supabase request failed: %s", getattr(exc, "message", exc))
            raise ServiceUnavailableError() from exc
        except httpx.HTTPError as exc:
            logger.error("Supabase transport error: %s", exc)
            raise ServiceUnavailableError() from exc

        elapsed_ms = (time.perf_counter() - started) * 1000
        threshold_ms = settings.slow_query_log_threshold_ms
        if threshold_ms > 0 and elapsed_ms >= threshold_ms:
            logger.warning("Slow Supabase query %.1fms", elapsed_ms)
        data = response.data
        return default if data is None and default is not None else data

    def select_one(
        self,
        table: str,
        filters: dict[str, Any],
        columns: str = "*",
        not_found: NotFoundError | None = None,
    ) -> dict[str, Any]:
        """Select a single row and raise ``not_found`` when missing."""
        row = self.select_first(table, filters, columns)
        if row is None:
            raise not_found or NotFoundError(table)
        return row

    def select_first(
        self,
        table: str,
        filters: dict[str, Any],
        columns: str = "*",
        order_by: str | None = None,
        descending: bool = False,
    ) -> dict[str, Any] | None:
        """Select the first matching row or ``None``."""
        rows = self.select_many(
            table,
            filters=filters,
            columns=columns,
            order_by=order_by,
            descending=descending,
            limit=1,
        )
        return rows[0] if rows else None

    def select_many(
        self,
        table: str,
        filters: dict[str, Any] | None = None,
        columns: str = "*",
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        """Select many rows from a table with optional filters and paging."""
        query = self.client.table(table).select(columns)
        if filters:
            for key, value in filters.items():
                query = query.eq(key, value)
        if order_by:
            query = query.order(order_by, desc=descending)
        if limit:
            query = query.limit(limit)
        return self.execute(query, default=[])

    def count(self, table: str, filters: dict[str, Any] | None = None) -> int:
        """Count rows in a table with optional equality filters."""
        # Head-only count so the vote table is never transferred.
        query = self.client.table(table).select("*", count="exact", head=True)
        if filters:
            for key, value in filters.items():
                query = query.eq(key, value)
        return self.execute_count(query)

    def execute_count(self, query) -> int:
        """Execute a ``count="exact"`` query and return the row count."""
        started = time.perf_counter()
        try:
            response = query.execute()
        except (APIError, httpx.HTTPError) as exc:
            logger.error("Supabase count failed: %s", exc)
            raise ServiceUnavailableError() from exc
        elapsed_ms = (time.perf_counter() - started) * 1000
        threshold_ms = settings.slow_query_log_threshold_ms
        if threshold_ms > 0 and elapsed_ms >= threshold_ms:
            logger.warning("Slow Supabase count %.1fms", elapsed_ms)
        return response.count or 0

    def insert_one(self, table: str, payload: dict[str, Any]) -> dict[str, Any]:
        """Insert one row and return the created object."""
        rows = self.execute(self.client.table(table).insert(payload), default=[])
        if not rows:
            raise ServiceUnavailableError(f"Failed to insert into {table}")
        return rows[0]

    def update(
        self,
        table: str,
        filters: dict[str, Any],
        payload: dict[str, Any],
    ) -> list[dict[str, Any]]:
        """Update rows by equality filters and return the updated rows.

        Filters are part of the same UPDATE statement, so filtering on the
        current value of a column makes this a conditional write.
        """
        query = self.client.table(table).update(payload)
        for key, value in filters.items():
            query = query.eq(key, value)
        return self.execute(query, default=[])

    def delete_before(self, table: str, column: str, before: str) -> list[dict[str, Any]]:
        """Delete rows whose ``column`` is strictly earlier than ``before``."""
        query = self.client.table(table).delete().lt(column, before)
        return self.execute(query, default=[])

    def rpc(self, function: str, params: dict[str, Any]) -> list[dict[str, Any]]:
        """Call a Postgres function and return its rows as a list."""
        rows = self.execute(self.client.rpc(function, params), default=[])
        if isinstance(rows, dict):
            return [rows]
        return rows
