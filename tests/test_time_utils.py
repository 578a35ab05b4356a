"""Time helper tests."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta, timezone

from app.utils.time import parse_timestamp, within_window


def test_parse_timestamp_empty() -> None:
    """Missing timestamps parse to None."""
    assert parse_timestamp(None) is None
    assert parse_timestamp("") is None


def test_parse_timestamp_zulu_and_offsets() -> None:
    """Store timestamps normalize to aware UTC."""
    assert parse_timestamp("2026-02-07T10:00:00Z") == datetime(2026, 2, 7, 10, tzinfo=UTC)
    result = parse_timestamp("2026-02-07T17:00:00+07:00")
    assert result == datetime(2026, 2, 7, 10, tzinfo=UTC)
    assert result.tzinfo == UTC


def test_parse_timestamp_naive_is_utc() -> None:
    assert parse_timestamp(datetime(2026, 2, 7, 10)) == datetime(2026, 2, 7, 10, tzinfo=UTC)
    local = datetime(2026, 2, 7, 12, tzinfo=timezone(timedelta(hours=2)))
    assert parse_timestamp(local) == datetime(2026, 2, 7, 10, tzinfo=UTC)


def test_within_window_is_inclusive() -> None:
    start = datetime(2026, 2, 7, 8, tzinfo=UTC)
    end = datetime(2026, 2, 7, 17, tzinfo=UTC)

    assert within_window(start, start, end)
    assert within_window(end, start, end)
    assert not within_window(end + timedelta(microseconds=1), start, end)
    assert not within_window(start - timedelta(microseconds=1), start, end)
    assert not within_window(start, None, end)
