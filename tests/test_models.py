"""
Tests for record parsing and serialization.
"""

from datetime import UTC, date, datetime

import pytest

from nextmove.errors import ValidationError
from nextmove.models import (
    Action,
    ActionState,
    ActionType,
    CapacityOverride,
    CapacityTier,
    Channel,
    CompletionDay,
    PriorityLevel,
    PriorityResult,
    Relationship,
)


def _row(**overrides):
    row = {"id": "a1", "action_type": "FOLLOW_UP", "state": "NEW", "due_date": "2026-03-11"}
    row.update(overrides)
    return row


class TestActionFromDict:
    def test_minimal_row(self):
        action = Action.from_dict(_row())
        assert action.action_type == ActionType.FOLLOW_UP
        assert action.state == ActionState.NEW
        assert action.due_date == date(2026, 3, 11)
        assert action.person_id is None

    def test_full_row(self):
        action = Action.from_dict(
            _row(
                person_id=42,
                snooze_until="2026-03-12",
                promised_due_at="2026-03-11T17:00:00Z",
                estimated_minutes="15",
                auto_created=True,
            )
        )
        assert action.person_id == "42"
        assert action.snooze_until == date(2026, 3, 12)
        assert action.promised_due_at == datetime(2026, 3, 11, 17, tzinfo=UTC)
        assert action.estimated_minutes == 15
        assert action.auto_created is True

    @pytest.mark.parametrize(
        "overrides",
        [{"id": None}, {"id": "  "}, {"action_type": "CALL"}, {"state": "OPEN"}, {"due_date": None}, {"due_date": "soon"}],
    )
    def test_required_fields(self, overrides):
        with pytest.raises(ValidationError):
            Action.from_dict(_row(**overrides))

    def test_malformed_optional_dates_degrade(self):
        action = Action.from_dict(_row(snooze_until="later", promised_due_at="eventually"))
        assert action.snooze_until is None
        assert action.promised_due_at is None

    @pytest.mark.parametrize("minutes", [0, -3, "abc"])
    def test_unusable_estimates_become_none(self, minutes):
        assert Action.from_dict(_row(estimated_minutes=minutes)).estimated_minutes is None

    def test_to_dict(self):
        data = Action.from_dict(_row(state="SENT")).to_dict()
        assert data["status"] == "waiting"
        assert data["due_date"] == "2026-03-11"
        assert data["snooze_until"] is None


class TestRelationship:
    def test_from_dict(self):
        rel = Relationship.from_dict(
            {"id": "r1", "name": "Sam", "preferred_channel": "email", "last_interaction_at": "2026-03-01T09:00:00"}
        )
        assert rel.preferred_channel == Channel.EMAIL
        assert rel.last_interaction_at == datetime(2026, 3, 1, 9)

    def test_unknown_channel(self):
        with pytest.raises(ValidationError):
            Relationship.from_dict({"id": "r1", "preferred_channel": "fax"})

    def test_empty_channel_is_none(self):
        assert Relationship.from_dict({"id": "r1", "preferred_channel": ""}).preferred_channel is None

    def test_effective_cadence(self):
        presets = {"moderate": 14}
        assert Relationship("r1", "A", cadence_days=5, cadence="moderate").effective_cadence_days(presets) == 5
        assert Relationship("r1", "A", cadence="moderate").effective_cadence_days(presets) == 14
        assert Relationship("r1", "A").effective_cadence_days(presets) is None
        assert Relationship.from_dict({"id": "r1", "cadence_days": 0}).cadence_days is None


class TestSmallRecords:
    def test_display_status(self):
        assert ActionState.NEW.display_status == "pending"
        assert ActionState.REPLIED.display_status == "done"
        assert ActionState.SNOOZED.display_status == "snoozed"

    def test_override_from_dict(self):
        override = CapacityOverride.from_dict({"tier": "micro", "reason": "Offsite"})
        assert override.tier == CapacityTier.MICRO
        with pytest.raises(ValidationError):
            CapacityOverride.from_dict({"tier": "huge"})

    def test_completion_rate(self):
        assert CompletionDay(date(2026, 3, 10), planned=4, completed=3).completion_rate == 0.75
        assert CompletionDay(date(2026, 3, 10), planned=0, completed=0).completion_rate == 0.0
        assert CompletionDay(date(2026, 3, 10), planned=2, completed=5).completion_rate == 1.0

    def test_completion_day_needs_date(self):
        with pytest.raises(ValidationError):
            CompletionDay.from_dict({"planned": 3})

    @pytest.mark.parametrize("planned", ["three", -1, True, [3]])
    def test_completion_day_counts_must_be_whole_numbers(self, planned):
        with pytest.raises(ValidationError):
            CompletionDay.from_dict({"date": "2026-03-10", "planned": planned, "completed": 0})

    def test_completion_day_counts_default_to_zero(self):
        day = CompletionDay.from_dict({"date": "2026-03-10", "planned": "4"})
        assert (day.planned, day.completed) == (4, 0)

    def test_priority_message_without_urgency(self):
        result = PriorityResult(PriorityLevel.LOW, "Nurture or content action")
        assert result.message == "Low priority. Nurture or content action"
        assert PriorityLevel.HIGH.weight > PriorityLevel.MEDIUM.weight > PriorityLevel.LOW.weight
