"""
Date/time parsing and range utilities — framework-agnostic.

All datetimes leaving this module are timezone-aware UTC.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, time, timedelta, timezone
from typing import Any, Optional

from errors import InvalidRangeError

DAY_FORMAT = "%Y-%m-%d"

_DATE_ONLY = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_EPOCH = re.compile(r"^[+-]?\d+(\.\d+)?$")


def parse_datetime(value: Any) -> Optional[datetime]:
    """Parse a date/time value into a timezone-aware UTC datetime.

    Accepts:
    - ``None`` → ``None``
    - ``datetime`` → converted to UTC (naive assumed UTC)
    - ``int`` / ``float`` or an all-digit ``str`` → treated as Unix epoch seconds
    - ``str`` ending in ``"Z"`` → converted to ``+00:00`` before parsing
    - Any ISO 8601 string (``datetime.fromisoformat``)

    Returns:
        A timezone-aware ``datetime`` in UTC, or ``None`` if *value* is ``None``
        or cannot be parsed.
    """
    if value is None:
        return None
    try:
        if isinstance(value, datetime):
            dt = value
        elif isinstance(value, (int, float)):
            return datetime.fromtimestamp(int(value), tz=timezone.utc)
        else:
            raw = str(value).strip()
            if _EPOCH.match(raw):
                return datetime.fromtimestamp(float(raw), tz=timezone.utc)
            if raw.endswith("Z"):
                raw = raw[:-1] + "+00:00"
            dt = datetime.fromisoformat(raw)
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        return dt.astimezone(timezone.utc)
    except (ValueError, OSError, OverflowError):
        return None


def parse_range_end(value: Any) -> Optional[datetime]:
    """Parse an inclusive range end.

    A bare ``YYYY-MM-DD`` covers the whole UTC day, so it expands to the
    last microsecond of that day.
    """
    if isinstance(value, str) and _DATE_ONLY.match(value.strip()):
        day = datetime.strptime(value.strip(), DAY_FORMAT).date()
        return datetime.combine(day, time.max, tzinfo=timezone.utc)
    return parse_datetime(value)


def day_key(dt: datetime) -> str:
    """UTC calendar day of *dt* as ``YYYY-MM-DD``."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).strftime(DAY_FORMAT)


def start_of_utc_day(dt: datetime) -> datetime:
    dt = dt.astimezone(timezone.utc)
    return dt.replace(hour=0, minute=0, second=0, microsecond=0)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class DateRange:
    """Inclusive ``[start, end]`` range; a missing bound means unbounded."""

    start: Optional[datetime] = None
    end: Optional[datetime] = None

    def __post_init__(self) -> None:
        if self.start is not None and self.end is not None and self.start > self.end:
            raise InvalidRangeError(
                "start_date must not be after end_date",
                details={
                    "start_date": self.start.isoformat(),
                    "end_date": self.end.isoformat(),
                },
            )

    @classmethod
    def parse(cls, start: Any = None, end: Any = None) -> "DateRange":
        """Build a range from raw request values.

        Raises InvalidRangeError for unparseable bounds or ``start > end``.
        """
        start_dt = parse_datetime(start) if start not in (None, "") else None
        if start not in (None, "") and start_dt is None:
            raise InvalidRangeError("start_date is not a valid date", field="start_date")
        end_dt = parse_range_end(end) if end not in (None, "") else None
        if end not in (None, "") and end_dt is None:
            raise InvalidRangeError("end_date is not a valid date", field="end_date")
        return cls(start_dt, end_dt)

    @classmethod
    def last_days(cls, days: int, now: Optional[datetime] = None) -> "DateRange":
        """Whole UTC days: from midnight ``days`` days ago through the end of today."""
        now = now or utcnow()
        today = start_of_utc_day(now)
        return cls(
            today - timedelta(days=days),
            today + timedelta(days=1) - timedelta(microseconds=1),
        )

    @property
    def is_bounded(self) -> bool:
        return self.start is not None or self.end is not None

    def describe(self) -> str:
        if not self.is_bounded:
            return "all time"
        start = self.start.strftime(DAY_FORMAT) if self.start else "beginning"
        end = self.end.strftime(DAY_FORMAT) if self.end else "now"
        return f"{start} to {end}"

    def to_dict(self) -> dict[str, Optional[str]]:
        return {
            "start_date": self.start.isoformat() if self.start else None,
            "end_date": self.end.isoformat() if self.end else None,
        }
