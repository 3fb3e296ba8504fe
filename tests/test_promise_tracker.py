"""
Tests for promise deadlines and their display text.
"""

from datetime import UTC, datetime, timedelta

import pytest

from nextmove.errors import ValidationError
from nextmove.models import ActionState
from nextmove.promise_tracker import (
    PromiseSelection,
    calculate_end_of_week,
    calculate_eod,
    format_promise,
    is_promise_overdue,
    overdue_promises,
    resolve_promise,
)
from tests.factories import NOW, make_action


class TestDeadlines:
    def test_eod_default_five_pm(self):
        assert calculate_eod(None, NOW) == datetime(2026, 3, 11, 17, 0)

    def test_eod_custom_time(self):
        assert calculate_eod("18:30", NOW) == datetime(2026, 3, 11, 18, 30)

    def test_eod_malformed_time_defaults_per_component(self):
        assert calculate_eod("99:45", NOW) == datetime(2026, 3, 11, 17, 45)

    def test_eod_keeps_timezone(self):
        now = NOW.replace(tzinfo=UTC)
        assert calculate_eod(None, now).tzinfo is UTC

    def test_end_of_week_is_coming_sunday(self):
        assert calculate_end_of_week(None, NOW) == datetime(2026, 3, 15, 17, 0)

    def test_end_of_week_on_sunday_is_today(self):
        sunday = datetime(2026, 3, 15, 9, 0)
        assert calculate_end_of_week("16:00", sunday) == datetime(2026, 3, 15, 16, 0)


class TestOverdue:
    def test_same_instant_is_not_overdue(self):
        assert is_promise_overdue(NOW, NOW) is False

    def test_just_before_now_is_overdue(self):
        assert is_promise_overdue(NOW - timedelta(microseconds=1), NOW) is True

    def test_no_promise_is_not_overdue(self):
        assert is_promise_overdue(None, NOW) is False

    def test_overdue_promises_skips_closed_and_sorts(self):
        actions = [
            make_action("late", promised_due_at=NOW - timedelta(hours=2)),
            make_action("later", promised_due_at=NOW - timedelta(days=2)),
            make_action("done", state=ActionState.DONE, promised_due_at=NOW - timedelta(days=3)),
            make_action("future", promised_due_at=NOW + timedelta(hours=1)),
            make_action("none"),
        ]
        assert [a.id for a in overdue_promises(actions, NOW)] == ["later", "late"]


class TestFormat:
    @pytest.mark.parametrize(
        "promised,text",
        [
            (datetime(2026, 3, 9, 10, 0), "Overdue promise (2 days)"),
            (datetime(2026, 3, 11, 9, 0), "Overdue promise (1 day)"),
            (datetime(2026, 3, 11, 17, 0), "Promised by EOD today"),
            (datetime(2026, 3, 12, 9, 0), "Promised today"),
            (datetime(2026, 3, 12, 12, 0), "Promised by EOD tomorrow"),
            (datetime(2026, 3, 16, 10, 0), "Promised by Mar 16"),
            (datetime(2026, 3, 18, 10, 0), "Promised by Mar 18"),
            (datetime(2026, 3, 19, 10, 0), "Promised by Mar 19, 2026"),
        ],
    )
    def test_format(self, promised, text):
        assert format_promise(promised, NOW) == text


class TestResolve:
    def test_eod(self):
        assert resolve_promise("eod", NOW) == datetime(2026, 3, 11, 17, 0)

    def test_end_of_week(self):
        assert resolve_promise(PromiseSelection.END_OF_WEEK, NOW, "12:00") == datetime(2026, 3, 15, 12, 0)

    def test_custom(self):
        assert resolve_promise("custom", NOW, custom_at="2026-03-20T09:00:00") == datetime(2026, 3, 20, 9, 0)

    @pytest.mark.parametrize("custom_at", [None, "", "next tuesday"])
    def test_custom_needs_valid_timestamp(self, custom_at):
        with pytest.raises(ValidationError):
            resolve_promise("custom", NOW, custom_at=custom_at)

    def test_unknown_selection(self):
        with pytest.raises(ValidationError):
            resolve_promise("whenever", NOW)
