"""
Capacity Calculator - decide how big today's plan should be.

Resolution order, first hit wins:
1. manual override for the date        → source "override"
2. adaptive recovery (missed days)     → source "recovery"
3. the user's stored default tier      → source "user_default"
4. calendar free minutes → minute band → source "calendar"
5. default free minutes → minute band  → source "default"

A calendar lookup that fails degrades to step 5; it never fails the plan.
"""

import logging
from datetime import date

from nextmove.errors import CalendarUnavailable
from nextmove.models import CapacityDecision, CapacityOverride, CapacitySource, CapacityTier, CompletionDay
from nextmove.policy import PlanningPolicy, default_policy

from .recovery import recovery_tier

logger = logging.getLogger(__name__)

CAPACITY_LABELS = {
    CapacityTier.MICRO: ("Busy Day", "1-2 actions"),
    CapacityTier.LIGHT: ("Light Day", "3-4 actions"),
    CapacityTier.STANDARD: ("Standard", "5-6 actions"),
    CapacityTier.HEAVY: ("Heavy Day", "7-8 actions"),
}

AUTO_LABEL = "Auto"


def capacity_label(tier: CapacityTier | str | None) -> str:
    if tier is None:
        return AUTO_LABEL
    return CAPACITY_LABELS[CapacityTier(tier)][0]


def capacity_description(tier: CapacityTier | str | None) -> str:
    if tier is None:
        return "Based on your calendar"
    return CAPACITY_LABELS[CapacityTier(tier)][1]


def read_free_minutes(free_minutes) -> int | None:
    """
    Resolve the calendar signal to minutes, or None when there is none.

    Lookup failures are logged and read as "no calendar".
    """
    value = free_minutes
    if callable(free_minutes):
        try:
            value = free_minutes()
        except (CalendarUnavailable, OSError, ValueError) as exc:
            logger.warning("Calendar lookup failed, using default minutes: %s", exc)
            return None

    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        logger.warning("Ignoring non-numeric free minutes: %r", value)
        return None
    if value < 0:
        logger.warning("Ignoring negative free minutes: %r", value)
        return None
    return int(value)


def resolve_capacity(
    plan_date: date,
    free_minutes=None,
    manual_override: CapacityOverride | None = None,
    completion_history: list[CompletionDay] | None = None,
    default_tier: CapacityTier | None = None,
    policy: PlanningPolicy | None = None,
) -> CapacityDecision:
    policy = policy or default_policy()
    history = completion_history or []

    def decision(tier: CapacityTier, source: CapacitySource, minutes=None, reason=None, recovery_day=0):
        return CapacityDecision(
            tier=tier,
            max_actions=policy.actions_for_tier(tier),
            source=source,
            free_minutes=minutes,
            reason=reason,
            recovery_day=recovery_day,
        )

    if manual_override is not None:
        logger.debug("Capacity for %s: override %s", plan_date, manual_override.tier.value)
        return decision(
            manual_override.tier,
            CapacitySource.OVERRIDE,
            reason=manual_override.reason,
        )

    tier, recovery_day = recovery_tier(history, plan_date, policy.recovery)
    if tier is not None:
        logger.info("Adaptive recovery for %s: %s (day %d)", plan_date, tier.value, recovery_day)
        return decision(
            tier,
            CapacitySource.RECOVERY,
            reason="Recovery day - a smaller plan to rebuild momentum",
            recovery_day=recovery_day,
        )

    if default_tier is not None:
        return decision(CapacityTier(default_tier), CapacitySource.USER_DEFAULT)

    minutes = read_free_minutes(free_minutes)
    if minutes is not None:
        tier = policy.tier_for_minutes(minutes)
        logger.debug("Capacity for %s: %d free minutes → %s", plan_date, minutes, tier.value)
        return decision(tier, CapacitySource.CALENDAR, minutes=minutes)

    minutes = policy.default_free_minutes
    return decision(policy.tier_for_minutes(minutes), CapacitySource.DEFAULT, minutes=minutes)
