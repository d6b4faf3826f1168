"""Tests for UTC timestamp normalization."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta, timezone

import pytest
from account_api.models.base import UTCDateTime, to_utc


class TestToUtc:
    def test_naive_values_are_tagged_without_shift(self):
        naive = datetime(2024, 5, 1, 10, 30)
        result = to_utc(naive)
        assert result.tzinfo is UTC
        assert (result.hour, result.minute) == (10, 30)

    def test_aware_values_are_converted_to_the_same_instant(self):
        cet = timezone(timedelta(hours=2))
        local = datetime(2024, 5, 1, 12, 0, tzinfo=cet)
        result = to_utc(local)
        assert result.tzinfo is UTC
        assert result.hour == 10
        assert result == local

    def test_utc_values_are_unchanged(self):
        value = datetime(2024, 5, 1, 12, 0, tzinfo=UTC)
        assert to_utc(value) == value

    def test_rejects_non_datetimes(self):
        with pytest.raises(TypeError):
            to_utc("2024-05-01T12:00:00")  # type: ignore[arg-type]


class TestUTCDateTime:
    def test_bind_and_result_processing(self):
        col = UTCDateTime()
        offset = timezone(timedelta(hours=-5))

        bound = col.process_bind_param(datetime(2024, 1, 1, 7, 0, tzinfo=offset), dialect=None)
        loaded = col.process_result_value(datetime(2024, 1, 1, 12, 0), dialect=None)

        assert bound == datetime(2024, 1, 1, 12, 0, tzinfo=UTC)
        assert loaded == datetime(2024, 1, 1, 12, 0, tzinfo=UTC)
        assert col.process_bind_param(None, dialect=None) is None
        assert col.process_result_value(None, dialect=None) is None
