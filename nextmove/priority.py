"""
Priority classification for actions.

Explicit, deterministic rules. First match wins:

1. REPLIED                       → High (respond while the thread is warm)
2. SNOOZED and snooze expired    → High
3. By type, using days overdue (calendar days, local midnight):
   FOLLOW_UP   today → High, 1-3 days late → High, 4+ late → Medium
   POST_CALL / CALL_PREP   today → High, otherwise Medium
   OUTREACH    → Medium
   NURTURE / CONTENT → Low
   anything else (FAST_WIN, future FOLLOW_UP) → Medium

The urgency label is independent of the level and depends on the due date
alone. Callers combine both through PriorityResult.message.
"""

import logging
from datetime import datetime

from nextmove.dates import days_overdue, local_today
from nextmove.models import (
    Action,
    ActionState,
    ActionType,
    PriorityLevel,
    PriorityResult,
    Relationship,
)

logger = logging.getLogger(__name__)

FOLLOW_UP_GRACE_DAYS = 3

CALL_TYPES = (ActionType.POST_CALL, ActionType.CALL_PREP)
LOW_TOUCH_TYPES = (ActionType.NURTURE, ActionType.CONTENT)


def _plural(n: int) -> str:
    return "" if n == 1 else "s"


def compute_urgency_label(action: Action, now: datetime) -> str | None:
    """
    Display label derived from the due date only.

    0 → "due today", >0 → "overdue N day(s)", -1 → "due tomorrow", else None.
    """
    diff = days_overdue(action.due_date, now)
    if diff == 0:
        return "due today"
    if diff > 0:
        return f"overdue {diff} day{_plural(diff)}"
    if diff == -1:
        return "due tomorrow"
    return None


def classify_priority(
    action: Action,
    relationship: Relationship | None = None,
    now: datetime | None = None,
) -> PriorityResult:
    """
    Classify one action at the instant `now`.

    `relationship` is accepted so call sites can pass the action's context
    uniformly; the current rules depend on the action alone.
    """
    if now is None:
        raise TypeError("classify_priority requires an explicit `now`")

    diff = days_overdue(action.due_date, now)
    urgency = compute_urgency_label(action, now)

    def result(level: PriorityLevel, reason: str) -> PriorityResult:
        return PriorityResult(level=level, reason=reason, urgency_label=urgency, days_overdue=diff)

    if action.state == ActionState.REPLIED:
        return result(
            PriorityLevel.HIGH,
            "Reply received - respond while the conversation is fresh",
        )

    if (
        action.state == ActionState.SNOOZED
        and action.snooze_until is not None
        and action.snooze_until <= local_today(now)
    ):
        return result(PriorityLevel.HIGH, "Snooze expired - time to follow up")

    if action.action_type == ActionType.FOLLOW_UP:
        if diff == 0:
            return result(PriorityLevel.HIGH, "Follow-up due today - maintain momentum")
        if 0 < diff <= FOLLOW_UP_GRACE_DAYS:
            return result(
                PriorityLevel.HIGH,
                f"Follow-up overdue by {diff} day{_plural(diff)} - prioritize to stay on track",
            )
        if diff > FOLLOW_UP_GRACE_DAYS:
            return result(PriorityLevel.MEDIUM, "Follow-up overdue - still important but less urgent")
        # future follow-ups fall through to the defaults

    if action.action_type in CALL_TYPES:
        if diff == 0:
            return result(PriorityLevel.HIGH, "Call-related action due today")
        return result(PriorityLevel.MEDIUM, "Call-related action - important for relationship building")

    if action.action_type == ActionType.OUTREACH:
        return result(PriorityLevel.MEDIUM, "Outreach action - building new connections")

    if action.action_type in LOW_TOUCH_TYPES:
        return result(PriorityLevel.LOW, "Nurture or content action - important but less time-sensitive")

    return result(PriorityLevel.MEDIUM, "Standard priority action")


def describe_priority(action: Action, now: datetime, relationship: Relationship | None = None) -> str:
    """One-line message: "High priority. due today. Follow-up due today - ..."."""
    return classify_priority(action, relationship, now).message


def classify_many(
    actions: list[Action],
    now: datetime,
    relationships: dict[str, Relationship] | None = None,
) -> dict[str, PriorityResult]:
    """Classify a batch; keys are action ids."""
    relationships = relationships or {}
    results = {}
    for action in actions:
        rel = relationships.get(action.person_id) if action.person_id else None
        results[action.id] = classify_priority(action, rel, now)
    logger.debug("Classified %d actions", len(results))
    return results
