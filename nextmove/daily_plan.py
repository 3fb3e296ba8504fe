"""
Daily Plan builder.

Turns a user's open actions into a bounded plan for one date:

1. Size the plan (capacity_truth.resolve_capacity).
2. Keep plan candidates: open, not SENT, not snoozed past the date, due on
   or before the date plus the policy horizon.
3. Rank candidates through the lane assigner.
4. Pick at most one fast win (best-ranked short task). It counts toward
   max_actions.
5. Fill the remaining slots in rank order, skipping the fast win.

Pure: same inputs and same `now` give the same plan. Persisting it (and
replacing any earlier plan for the date) is the store's job.
"""

import logging
from datetime import date, datetime, timedelta

from nextmove.capacity_truth import resolve_capacity
from nextmove.dates import is_weekend
from nextmove.lane_assigner import assign_lanes, rank_assignments
from nextmove.models import (
    CLOSED_STATES,
    COMPLETED_STATES,
    Action,
    ActionState,
    ActionType,
    CapacityOverride,
    CapacityTier,
    CompletionDay,
    DailyPlan,
    Relationship,
)
from nextmove.policy import PlanningPolicy, default_policy

logger = logging.getLogger(__name__)

FAST_WIN_EXCLUDED_STATES = COMPLETED_STATES | CLOSED_STATES

WEEKEND_SKIP_REASON = "weekend"


def is_plan_candidate(action: Action, plan_date: date, policy: PlanningPolicy) -> bool:
    if not action.is_open or action.state == ActionState.SENT:
        return False
    if (
        action.state == ActionState.SNOOZED
        and action.snooze_until is not None
        and action.snooze_until > plan_date
    ):
        return False
    return action.due_date <= plan_date + timedelta(days=policy.plan_horizon_days)


def is_fast_win(action: Action, policy: PlanningPolicy) -> bool:
    if action.state in FAST_WIN_EXCLUDED_STATES:
        return False
    if action.action_type == ActionType.FAST_WIN:
        return True
    return action.estimated_minutes is not None and action.estimated_minutes <= policy.fast_win_max_minutes


def build_daily_plan(
    user_id: str,
    plan_date: date,
    open_actions: list[Action],
    free_minutes=None,
    manual_override: CapacityOverride | None = None,
    completion_history: list[CompletionDay] | None = None,
    now: datetime | None = None,
    *,
    relationships: dict[str, Relationship] | None = None,
    default_tier: CapacityTier | None = None,
    exclude_weekends: bool | None = None,
    policy: PlanningPolicy | None = None,
) -> DailyPlan:
    """
    Build one user's plan for `plan_date`.

    `free_minutes` is an int, None (no calendar) or a zero-argument lookup.
    An empty candidate list yields an empty plan, not an error.
    """
    if now is None:
        raise TypeError("build_daily_plan requires an explicit `now`")
    policy = policy or default_policy()
    if exclude_weekends is None:
        exclude_weekends = policy.exclude_weekends

    capacity = resolve_capacity(
        plan_date,
        free_minutes=free_minutes,
        manual_override=manual_override,
        completion_history=completion_history,
        default_tier=default_tier,
        policy=policy,
    )

    plan = DailyPlan(
        user_id=user_id,
        date=plan_date,
        capacity_tier=capacity.tier,
        max_actions=capacity.max_actions,
        capacity_source=capacity.source,
        free_minutes=capacity.free_minutes,
        override_reason=manual_override.reason if manual_override else None,
        generated_at=now,
    )

    if exclude_weekends and is_weekend(plan_date):
        logger.info("Skipping plan for %s on %s: weekend", user_id, plan_date)
        plan.skipped_reason = WEEKEND_SKIP_REASON
        return plan

    candidates = [a for a in open_actions if is_plan_candidate(a, plan_date, policy)]
    ranked = rank_assignments(assign_lanes(candidates, now, relationships, policy))
    by_id: dict[str, Action] = {}
    for action in candidates:
        by_id.setdefault(action.id, action)

    fast_win = None
    for assignment in ranked:
        action = by_id[assignment.action_id]
        if is_fast_win(action, policy):
            fast_win = action
            break

    slots = plan.max_actions - (1 if fast_win else 0)
    selected = []
    for assignment in ranked:
        if len(selected) >= slots:
            break
        if fast_win is not None and assignment.action_id == fast_win.id:
            continue
        selected.append(by_id[assignment.action_id])

    plan.fast_win = fast_win
    plan.actions = selected

    logger.debug(
        "Plan for %s on %s: %s (%s), %d/%d actions, fast win %s",
        user_id,
        plan_date,
        plan.capacity_tier.value,
        plan.capacity_source.value,
        len(plan.all_actions),
        plan.max_actions,
        fast_win.id if fast_win else None,
    )
    return plan
