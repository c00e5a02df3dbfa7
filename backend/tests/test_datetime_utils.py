"""Tests for timestamp serialization."""

from datetime import datetime, timedelta, timezone

from taskmanager.utils.datetime_utils import isoformat_utc


def test_naive_value_is_treated_as_utc() -> None:
    assert isoformat_utc(datetime(2024, 5, 1, 9, 30)) == "2024-05-01T09:30:00+00:00"


def test_aware_value_is_converted_to_utc() -> None:
    value = datetime(2024, 5, 1, 11, 30, tzinfo=timezone(timedelta(hours=2)))

    assert isoformat_utc(value) == "2024-05-01T09:30:00+00:00"


def test_none_passes_through() -> None:
    assert isoformat_utc(None) is None
