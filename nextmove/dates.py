"""
Date normalization — the one place calendar math happens.

Two kinds of time flow through the engine:
1. Calendar dates (due_date, snooze_until, plan dates). Compared at local
   midnight, so "due today" means the same date on the caller's wall clock.
2. Precise timestamps (promised_due_at, last_interaction_at). Compared as
   instants; whole-day differences are floor(elapsed / 24h).

Every component goes through these helpers. No other module should parse
date strings or subtract datetimes on its own.
"""

import logging
import math
import re
from datetime import date, datetime, timedelta

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 86400

_LEADING_INT = re.compile(r"^\s*(\d+)")


# =============================================================================
# PARSING
# =============================================================================


def parse_local_date(value) -> date | None:
    """
    Parse a calendar date, discarding any time component.

    "2026-03-11" and "2026-03-11T09:30:00Z" both give date(2026, 3, 11).
    Malformed input returns None.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        logger.warning("Unparseable date value: %r", value)
        return None
    date_only = value.strip().split("T")[0].split(" ")[0]
    try:
        return date.fromisoformat(date_only)
    except ValueError:
        logger.warning("Invalid date string: %r", value)
        return None


def parse_timestamp(value) -> datetime | None:
    """
    Parse a precise timestamp.

    Accepts ISO 8601 strings (a trailing "Z" is read as UTC), datetimes, and
    bare dates (taken as local midnight). Malformed input returns None.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if not isinstance(value, str) or not value.strip():
        logger.warning("Unparseable timestamp value: %r", value)
        return None
    raw = value.strip()
    if raw.endswith("Z") or raw.endswith("z"):
        raw = raw[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(raw)
    except ValueError:
        logger.warning("Invalid timestamp string: %r", value)
        return None


def parse_time_of_day(value: str | None, default: tuple[int, int] = (17, 0)) -> tuple[int, int]:
    """
    Parse "HH:MM" (or "HH:MM:SS") into (hour, minute).

    Hour and minute are read independently: an unparseable or out-of-range
    component falls back to its default without touching the other one.
    """
    default_hour, default_minute = default
    if not value or not isinstance(value, str):
        return default_hour, default_minute

    parts = value.split(":")
    hour = _int_component(parts[0], 0, 23, default_hour)
    minute = _int_component(parts[1] if len(parts) > 1 else "", 0, 59, default_minute)
    return hour, minute


def _int_component(raw: str, low: int, high: int, fallback: int) -> int:
    match = _LEADING_INT.match(raw)
    if not match:
        return fallback
    number = int(match.group(1))
    if number < low or number > high:
        return fallback
    return number


# =============================================================================
# NORMALIZATION
# =============================================================================


def align_to(ts: datetime, reference: datetime) -> datetime:
    """
    Make ts comparable with reference.

    Naive timestamps are read in the reference's zone. Aware timestamps are
    converted to the reference's zone, or to local wall-clock when the
    reference itself is naive.
    """
    if reference.tzinfo is None:
        if ts.tzinfo is None:
            return ts
        return ts.astimezone().replace(tzinfo=None)
    if ts.tzinfo is None:
        return ts.replace(tzinfo=reference.tzinfo)
    return ts.astimezone(reference.tzinfo)


def local_today(now: datetime) -> date:
    """The caller's calendar date at the instant `now`."""
    return now.date()


# =============================================================================
# DIFFERENCES
# =============================================================================


def days_overdue(due_date: date, now: datetime) -> int:
    """
    Calendar days past due, both sides at local midnight.

    Positive = overdue, 0 = due today, negative = in the future.
    """
    return (local_today(now) - due_date).days


def whole_days_between(later: datetime, earlier: datetime) -> int:
    """floor((later - earlier) / 24h). Negative when `later` precedes `earlier`."""
    earlier = align_to(earlier, later)
    elapsed = (later - earlier).total_seconds()
    return math.floor(elapsed / SECONDS_PER_DAY)


def is_weekend(day: date) -> bool:
    """Saturday or Sunday."""
    return day.weekday() >= 5


def days_until_sunday(day: date) -> int:
    """0 on a Sunday, otherwise days until the coming Sunday."""
    return 6 - day.weekday()


def upcoming_sunday(day: date) -> date:
    return day + timedelta(days=days_until_sunday(day))
