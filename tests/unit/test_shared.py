"""
Unit tests for the shared/ utility modules.

Covers:
- shared.datetime_utils (parse_datetime, parse_range_end, day_key, DateRange)
- shared.dimensions     (Dimension, sentinels)
- shared.logging        (redact_sensitive_fields, should_sample, setup_logging)
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from config import LoggingSettings
from errors import InvalidRangeError
from shared import logging as shared_logging
from shared.datetime_utils import (
    DateRange,
    day_key,
    parse_datetime,
    parse_range_end,
    start_of_utc_day,
)
from shared.dimensions import (
    DIRECT_REFERRER,
    REPORT_DIMENSIONS,
    UNKNOWN_BUCKET,
    Dimension,
)


# ---------------------------------------------------------------------------
# parse_datetime / parse_range_end
# ---------------------------------------------------------------------------


class TestParseDatetime:
    @pytest.mark.parametrize(
        "value, expected",
        [
            ("2024-01-01T10:00:00Z", datetime(2024, 1, 1, 10, tzinfo=timezone.utc)),
            (
                "2024-01-01T12:00:00+02:00",
                datetime(2024, 1, 1, 10, tzinfo=timezone.utc),
            ),
            ("2024-01-01", datetime(2024, 1, 1, tzinfo=timezone.utc)),
            (1704103200, datetime(2024, 1, 1, 10, tzinfo=timezone.utc)),
            ("1704103200", datetime(2024, 1, 1, 10, tzinfo=timezone.utc)),
            ("1704103200.5", datetime(2024, 1, 1, 10, 0, 0, 500000, tzinfo=timezone.utc)),
            (datetime(2024, 1, 1, 10), datetime(2024, 1, 1, 10, tzinfo=timezone.utc)),
        ],
        ids=[
            "zulu",
            "offset",
            "date_only",
            "epoch",
            "epoch_str",
            "epoch_fraction",
            "naive_datetime",
        ],
    )
    def test_parses_to_utc(self, value, expected):
        assert parse_datetime(value) == expected

    def test_none_passes_through(self):
        assert parse_datetime(None) is None

    def test_garbage_returns_none(self):
        assert parse_datetime("yesterday-ish") is None

    def test_range_end_covers_whole_day(self):
        end = parse_range_end("2024-01-02")
        assert end == datetime(2024, 1, 2, 23, 59, 59, 999999, tzinfo=timezone.utc)

    def test_range_end_keeps_explicit_time(self):
        end = parse_range_end("2024-01-02T06:00:00Z")
        assert end == datetime(2024, 1, 2, 6, tzinfo=timezone.utc)


class TestDayKey:
    def test_formats_utc_date(self):
        assert day_key(datetime(2024, 1, 2, 23, 59, tzinfo=timezone.utc)) == "2024-01-02"

    def test_converts_offset_to_utc_first(self):
        local = datetime(2024, 1, 2, 1, 0, tzinfo=timezone(timedelta(hours=3)))
        assert day_key(local) == "2024-01-01"

    def test_start_of_utc_day(self):
        dt = datetime(2024, 3, 5, 17, 45, 12, tzinfo=timezone.utc)
        assert start_of_utc_day(dt) == datetime(2024, 3, 5, tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# DateRange
# ---------------------------------------------------------------------------


class TestDateRange:
    def test_start_after_end_raises(self):
        with pytest.raises(InvalidRangeError):
            DateRange.parse("2024-02-01", "2024-01-01")

    def test_same_day_is_valid(self):
        date_range = DateRange.parse("2024-01-01", "2024-01-01")
        assert date_range.start < date_range.end

    def test_unparseable_bound_raises(self):
        with pytest.raises(InvalidRangeError) as exc_info:
            DateRange.parse("not-a-date", None)
        assert exc_info.value.field == "start_date"

    def test_empty_strings_are_unbounded(self):
        date_range = DateRange.parse("", "")
        assert not date_range.is_bounded
        assert date_range.describe() == "all time"

    def test_describe_bounded(self):
        assert DateRange.parse("2024-01-01", "2024-01-31").describe() == (
            "2024-01-01 to 2024-01-31"
        )

    def test_last_days_spans_whole_days(self):
        now = datetime(2024, 1, 31, 15, 0, tzinfo=timezone.utc)
        date_range = DateRange.last_days(30, now)
        assert date_range.start == datetime(2024, 1, 1, tzinfo=timezone.utc)
        assert date_range.end.date() == now.date()

    def test_to_dict(self):
        date_range = DateRange.parse("2024-01-01T00:00:00Z", None)
        assert date_range.to_dict() == {
            "start_date": "2024-01-01T00:00:00+00:00",
            "end_date": None,
        }


# ---------------------------------------------------------------------------
# Dimension
# ---------------------------------------------------------------------------


class TestDimension:
    def test_referrer_sentinel_is_direct(self):
        assert Dimension.REFERRER.sentinel == DIRECT_REFERRER

    @pytest.mark.parametrize(
        "dimension", [Dimension.COUNTRY, Dimension.DEVICE, Dimension.CITY]
    )
    def test_other_sentinels_are_unknown(self, dimension):
        assert dimension.sentinel == UNKNOWN_BUCKET

    def test_only_day_is_temporal(self):
        assert [d for d in Dimension if d.is_temporal] == [Dimension.DAY]

    def test_parse_is_case_insensitive(self):
        assert Dimension.parse(" Country ") is Dimension.COUNTRY

    def test_parse_rejects_unknown(self):
        with pytest.raises(ValueError, match="dimension must be one of"):
            Dimension.parse("planet")

    def test_report_dimensions(self):
        assert [d.value for d in REPORT_DIMENSIONS] == [
            "day",
            "country",
            "device",
            "browser",
            "os",
        ]

    def test_fields_map_to_click_event(self):
        from schemas.models.click import ClickEvent

        for dimension in Dimension:
            assert dimension.field in ClickEvent.model_fields


# ---------------------------------------------------------------------------
# logging
# ---------------------------------------------------------------------------


class TestLogging:
    def test_redacts_sensitive_fields(self):
        event = {
            "event": "stats_report_composed",
            "ip": "1.2.3.4",
            "api_token": "abc",
            "link_id": "x",
        }
        result = shared_logging.redact_sensitive_fields(None, "info", event)
        assert result["ip"] == "***REDACTED***"
        assert result["api_token"] == "***REDACTED***"
        assert result["link_id"] == "x"
        assert result["event"] == "stats_report_composed"

    def test_unsampled_events_always_logged(self):
        assert shared_logging.should_sample("never_configured") is True

    def test_zero_rate_never_logged(self, monkeypatch):
        monkeypatch.setitem(shared_logging.SAMPLING_RATES, "stats_query", 0.0)
        assert shared_logging.should_sample("stats_query") is False

    def test_rate_uses_random(self, mocker):
        mocker.patch.object(shared_logging.random, "random", return_value=0.1)
        mocker.patch.dict(shared_logging.SAMPLING_RATES, {"stats_query": 0.2})
        assert shared_logging.should_sample("stats_query") is True

    def test_setup_logging_applies_sampling_rates(self, mocker):
        mocker.patch.dict(shared_logging.SAMPLING_RATES, {}, clear=False)
        mocker.patch.object(shared_logging, "configure_structlog")
        mocker.patch.object(shared_logging, "configure_stdlib_logging")
        shared_logging.setup_logging(
            LoggingSettings(sample_rate_stats=0.5, sample_rate_export=0.25)
        )
        assert shared_logging.SAMPLING_RATES["stats_query"] == 0.5
        assert shared_logging.SAMPLING_RATES["stats_export"] == 0.25
