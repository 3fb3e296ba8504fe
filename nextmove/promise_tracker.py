"""
Promise Tracker — explicit commitments with their own deadline.

A promise is a user-declared `promised_due_at` on an action, separate from
the action's due_date:
- "I'll send it by end of day"      → EOD
- "I'll get back to you this week"  → end of week (Sunday)
- "by the 14th at 10:00"            → custom timestamp

Unlike priority, promise math is instant-based: whole days are
floor(elapsed / 24h), not calendar-midnight differences.
"""

import logging
from datetime import datetime, timedelta
from enum import Enum

from nextmove.dates import (
    align_to,
    local_today,
    parse_time_of_day,
    parse_timestamp,
    upcoming_sunday,
    whole_days_between,
)
from nextmove.errors import ValidationError
from nextmove.models import Action

logger = logging.getLogger(__name__)

DEFAULT_WORK_END_TIME = "17:00"
SHORT_DATE_WINDOW_DAYS = 7


class PromiseSelection(str, Enum):
    EOD = "eod"
    END_OF_WEEK = "end_of_week"
    CUSTOM = "custom"


def _at_work_end(day_start: datetime, work_end_time: str | None) -> datetime:
    hour, minute = parse_time_of_day(work_end_time or DEFAULT_WORK_END_TIME)
    return day_start.replace(hour=hour, minute=minute, second=0, microsecond=0)


def calculate_eod(work_end_time: str | None = None, now: datetime | None = None) -> datetime:
    """Today at work_end_time ("HH:MM", default 17:00) in the caller's zone."""
    if now is None:
        raise TypeError("calculate_eod requires an explicit `now`")
    return _at_work_end(now, work_end_time)


def calculate_end_of_week(work_end_time: str | None = None, now: datetime | None = None) -> datetime:
    """The coming Sunday (today, if today is Sunday) at work_end_time."""
    if now is None:
        raise TypeError("calculate_end_of_week requires an explicit `now`")
    sunday = upcoming_sunday(local_today(now))
    shifted = now + timedelta(days=(sunday - local_today(now)).days)
    return _at_work_end(shifted, work_end_time)


def is_promise_overdue(promised_due_at: datetime | None, now: datetime) -> bool:
    """True iff the promise lies strictly before `now`."""
    if promised_due_at is None:
        return False
    return align_to(promised_due_at, now) < now


def _plural(n: int) -> str:
    return "" if n == 1 else "s"


def format_promise(promised_due_at: datetime, now: datetime) -> str:
    """
    Human text for a promise relative to `now`.

    diff_days < 0 → overdue, 0 → today, 1 → tomorrow, <= 7 → short date,
    else long date.
    """
    promised = align_to(promised_due_at, now)
    diff_days = whole_days_between(promised, now)

    if diff_days < 0:
        overdue = abs(diff_days)
        return f"Overdue promise ({overdue} day{_plural(overdue)})"
    if diff_days == 0:
        if promised.date() == now.date():
            return "Promised by EOD today"
        return "Promised today"
    if diff_days == 1:
        return "Promised by EOD tomorrow"
    if diff_days <= SHORT_DATE_WINDOW_DAYS:
        return f"Promised by {promised.strftime('%b')} {promised.day}"
    return f"Promised by {promised.strftime('%b')} {promised.day}, {promised.year}"


def resolve_promise(
    selection: PromiseSelection | str,
    now: datetime,
    work_end_time: str | None = None,
    custom_at=None,
) -> datetime:
    """Turn a promise selection into its concrete timestamp."""
    try:
        selection = PromiseSelection(selection)
    except ValueError as exc:
        raise ValidationError(f"Unknown promise selection: {selection!r}") from exc

    if selection == PromiseSelection.EOD:
        return calculate_eod(work_end_time, now)
    if selection == PromiseSelection.END_OF_WEEK:
        return calculate_end_of_week(work_end_time, now)

    if custom_at is None or custom_at == "":
        raise ValidationError("A custom promise needs a timestamp.")
    promised = parse_timestamp(custom_at)
    if promised is None:
        raise ValidationError(f"Invalid custom promise timestamp: {custom_at!r}")
    return promised


def overdue_promises(actions: list[Action], now: datetime) -> list[Action]:
    """Open actions whose promise has lapsed, oldest promise first."""
    lapsed = [
        a
        for a in actions
        if a.is_open and a.promised_due_at is not None and is_promise_overdue(a.promised_due_at, now)
    ]
    lapsed.sort(key=lambda a: (align_to(a.promised_due_at, now), a.id))
    if lapsed:
        logger.debug("%d overdue promises", len(lapsed))
    return lapsed
