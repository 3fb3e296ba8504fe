"""
Adaptive Recovery - shrink the plan after a run of missed days.

Eligible day: a past plan date (strictly before the plan being built) that
actually had actions planned. Skipped days (weekends, empty plans) do not
count for or against the user.

Missed day: completion rate below the policy's missed_below_rate.

Trigger: at least `min_missed` misses among the last `window_days`
eligible days. First recovery day → micro; if the most recent eligible day
was itself a recovery plan → light.
"""

import logging
from datetime import date

from nextmove.models import CapacityOverride, CapacitySource, CapacityTier, CompletionDay
from nextmove.policy import RecoveryRule

logger = logging.getLogger(__name__)

RECOVERY_TIERS = frozenset({CapacityTier.MICRO, CapacityTier.LIGHT})

LOW_COMPLETION_WINDOW = 3
LOW_COMPLETION_RATE = 0.5
HIGH_STREAK_WINDOW = 7
HIGH_STREAK_RATE = 0.8


def eligible_days(history: list[CompletionDay], before: date) -> list[CompletionDay]:
    """Past plan days with planned > 0, most recent first, one per date."""
    seen = set()
    days = []
    for entry in sorted(history, key=lambda d: d.date, reverse=True):
        if entry.date >= before or entry.planned <= 0 or entry.date in seen:
            continue
        seen.add(entry.date)
        days.append(entry)
    return days


def is_missed_day(day: CompletionDay, rule: RecoveryRule) -> bool:
    return day.completion_rate < rule.missed_below_rate


def recovery_tier(
    history: list[CompletionDay],
    before: date,
    rule: RecoveryRule,
) -> tuple[CapacityTier | None, int]:
    """
    (tier, recovery_day) when recovery applies, else (None, 0).

    recovery_day is 1 on the first recovery day and counts up across
    consecutive recovery plans, however long the run.
    """
    days = eligible_days(history, before)
    recent = days[: rule.window_days]
    missed = sum(1 for d in recent if is_missed_day(d, rule))
    if missed < rule.min_missed:
        return None, 0

    streak = 0
    for entry in days:
        if entry.capacity_source != CapacitySource.RECOVERY:
            break
        streak += 1

    tier = CapacityTier.LIGHT if streak else CapacityTier.MICRO
    logger.debug("Recovery triggered: %d/%d missed, day %d → %s", missed, len(recent), streak + 1, tier.value)
    return tier, streak + 1


def is_adaptive_recovery(
    tier: CapacityTier | str | None,
    manual_override: CapacityOverride | None,
    default_tier: CapacityTier | str | None,
) -> bool:
    """
    Tell a system-applied recovery plan apart from a user-chosen small day.

    Recovery iff the tier is micro/light, there is no override, and the tier
    differs from the user's stored default.
    """
    if tier is None or manual_override is not None:
        return False
    tier = CapacityTier(tier)
    if tier not in RECOVERY_TIERS:
        return False
    return default_tier is None or tier != CapacityTier(default_tier)


def _recent_rates(history: list[CompletionDay], before: date, window: int) -> list[float]:
    return [d.completion_rate for d in eligible_days(history, before)[:window]]


def has_low_completion_pattern(history: list[CompletionDay], before: date) -> bool:
    """Each of the last 3 plans finished under 50%."""
    rates = _recent_rates(history, before, LOW_COMPLETION_WINDOW)
    return len(rates) == LOW_COMPLETION_WINDOW and all(r < LOW_COMPLETION_RATE for r in rates)


def has_high_completion_streak(history: list[CompletionDay], before: date) -> bool:
    """Each of the last 7 plans finished at 80% or better."""
    rates = _recent_rates(history, before, HIGH_STREAK_WINDOW)
    return len(rates) == HIGH_STREAK_WINDOW and all(r >= HIGH_STREAK_RATE for r in rates)
