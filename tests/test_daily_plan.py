"""
Tests for the daily plan builder.
"""

from datetime import date, timedelta

import pytest

from nextmove.daily_plan import build_daily_plan
from nextmove.errors import CalendarUnavailable
from nextmove.models import ActionState, ActionType, CapacityOverride, CapacitySource, CapacityTier
from tests.factories import NOW, TODAY, make_action, make_relationship, missed_days


@pytest.fixture
def seven_actions():
    """One fast win (3 minutes) among seven open actions."""
    return [
        make_action("f", action_type=ActionType.OUTREACH, due=-1, estimated_minutes=3),
        make_action("a1", due=0),
        make_action("a2", due=-2),
        make_action("a3", action_type=ActionType.POST_CALL, due=0),
        make_action("a4", action_type=ActionType.OUTREACH, due=0),
        make_action("a5", action_type=ActionType.NURTURE, due=-1),
        make_action("a6", action_type=ActionType.CONTENT, due=0),
    ]


class TestSelection:
    def test_fast_win_plus_next_best(self, policy, seven_actions):
        plan = build_daily_plan("u1", TODAY, seven_actions, free_minutes=45, now=NOW, policy=policy)
        assert plan.max_actions == 3
        assert plan.fast_win.id == "f"
        assert [a.id for a in plan.actions] == ["a2", "a1"]
        assert plan.action_ids == ["f", "a2", "a1"]

    def test_without_fast_win_fills_every_slot(self, policy, seven_actions):
        actions = [a for a in seven_actions if a.id != "f"]
        plan = build_daily_plan("u1", TODAY, actions, free_minutes=45, now=NOW, policy=policy)
        assert plan.fast_win is None
        assert [a.id for a in plan.actions] == ["a2", "a1", "a3"]

    def test_fast_win_type_qualifies_without_estimate(self, policy):
        actions = [make_action("q", action_type=ActionType.FAST_WIN), make_action("a", due=-1)]
        plan = build_daily_plan("u1", TODAY, actions, free_minutes=45, now=NOW, policy=policy)
        assert plan.fast_win.id == "q"

    def test_best_scored_fast_win_is_picked(self, policy):
        actions = [
            make_action("slow-win", action_type=ActionType.CONTENT, estimated_minutes=2),
            make_action("urgent-win", estimated_minutes=5),
        ]
        plan = build_daily_plan("u1", TODAY, actions, free_minutes=45, now=NOW, policy=policy)
        assert plan.fast_win.id == "urgent-win"
        assert [a.id for a in plan.actions] == ["slow-win"]

    def test_replied_is_planned_but_never_the_fast_win(self, policy):
        actions = [make_action("r", state=ActionState.REPLIED, estimated_minutes=2)]
        plan = build_daily_plan("u1", TODAY, actions, free_minutes=45, now=NOW, policy=policy)
        assert plan.fast_win is None
        assert [a.id for a in plan.actions] == ["r"]

    def test_ties_resolve_by_id(self, policy):
        actions = [make_action("b"), make_action("a"), make_action("c")]
        plan = build_daily_plan("u1", TODAY, actions, free_minutes=10, now=NOW, policy=policy)
        assert [a.id for a in plan.actions] == ["a", "b"]

    def test_in_motion_before_on_deck(self, policy):
        actions = [
            make_action("deck", action_type=ActionType.NURTURE),
            make_action("motion", action_type=ActionType.NURTURE, person_id="r1"),
        ]
        rels = {"r1": make_relationship("r1", last_interaction_days_ago=2)}
        plan = build_daily_plan("u1", TODAY, actions, free_minutes=10, now=NOW, relationships=rels, policy=policy)
        assert [a.id for a in plan.actions] == ["motion", "deck"]


class TestCandidates:
    def test_excluded_states_and_dates(self, policy):
        actions = [
            make_action("sent", state=ActionState.SENT),
            make_action("done", state=ActionState.DONE),
            make_action("archived", state=ActionState.ARCHIVED),
            make_action("snoozed", state=ActionState.SNOOZED, snooze_until=TODAY + timedelta(days=1)),
            make_action("woken", state=ActionState.SNOOZED, snooze_until=TODAY),
            make_action("future", due=1),
            make_action("ok", due=0),
        ]
        plan = build_daily_plan("u1", TODAY, actions, free_minutes=600, now=NOW, policy=policy)
        assert sorted(plan.action_ids) == ["ok", "woken"]

    def test_horizon_admits_upcoming(self):
        from nextmove.policy import PlanningPolicy

        wide = PlanningPolicy(plan_horizon_days=2)
        actions = [make_action("soon", due=2), make_action("later", due=3)]
        plan = build_daily_plan("u1", TODAY, actions, free_minutes=600, now=NOW, policy=wide)
        assert plan.action_ids == ["soon"]

    def test_no_actions_is_empty_plan(self, policy):
        plan = build_daily_plan("u1", TODAY, [], free_minutes=None, now=NOW, policy=policy)
        assert plan.actions == []
        assert plan.fast_win is None
        assert plan.capacity_source == CapacitySource.DEFAULT
        assert plan.capacity_tier == CapacityTier.STANDARD


class TestCapacity:
    def test_recovery_overrides_calendar(self, policy, seven_actions):
        plan = build_daily_plan(
            "u1", TODAY, seven_actions, free_minutes=300, completion_history=missed_days(3), now=NOW, policy=policy
        )
        assert plan.capacity_tier == CapacityTier.MICRO
        assert plan.capacity_source == CapacitySource.RECOVERY
        assert plan.is_recovery
        assert len(plan.all_actions) == 2

    def test_override_reason_recorded(self, policy, seven_actions):
        override = CapacityOverride(CapacityTier.HEAVY, "Clear calendar")
        plan = build_daily_plan("u1", TODAY, seven_actions, 10, override, now=NOW, policy=policy)
        assert plan.capacity_source == CapacitySource.OVERRIDE
        assert plan.override_reason == "Clear calendar"
        assert len(plan.all_actions) == 7

    def test_calendar_failure_degrades(self, policy, seven_actions):
        def lookup():
            raise CalendarUnavailable("no calendar connected")

        plan = build_daily_plan("u1", TODAY, seven_actions, free_minutes=lookup, now=NOW, policy=policy)
        assert plan.capacity_source == CapacitySource.DEFAULT
        assert plan.max_actions == 6


class TestWeekend:
    def test_weekend_skipped_when_excluded(self, policy, seven_actions):
        saturday = date(2026, 3, 14)
        plan = build_daily_plan("u1", saturday, seven_actions, now=NOW, exclude_weekends=True, policy=policy)
        assert plan.skipped_reason == "weekend"
        assert plan.all_actions == []

    def test_weekend_planned_by_default(self, policy, seven_actions):
        saturday = date(2026, 3, 14)
        plan = build_daily_plan("u1", saturday, seven_actions, free_minutes=45, now=NOW, policy=policy)
        assert plan.skipped_reason is None
        assert len(plan.all_actions) == 3


class TestDeterminism:
    def test_identical_inputs_identical_plan(self, policy, seven_actions):
        first = build_daily_plan("u1", TODAY, seven_actions, free_minutes=45, now=NOW, policy=policy)
        second = build_daily_plan("u1", TODAY, list(reversed(seven_actions)), free_minutes=45, now=NOW, policy=policy)
        assert first.to_dict() == second.to_dict()

    def test_generated_at_is_now(self, policy):
        plan = build_daily_plan("u1", TODAY, [], now=NOW, policy=policy)
        assert plan.generated_at == NOW

    def test_now_required(self, policy):
        with pytest.raises(TypeError):
            build_daily_plan("u1", TODAY, [], policy=policy)

    def test_to_dict_shape(self, policy, seven_actions):
        data = build_daily_plan("u1", TODAY, seven_actions, free_minutes=45, now=NOW, policy=policy).to_dict()
        assert data["date"] == "2026-03-11"
        assert data["capacity_tier"] == "light"
        assert data["capacity_source"] == "calendar"
        assert data["fast_win"]["id"] == "f"
        assert [a["id"] for a in data["actions"]] == ["a2", "a1"]
