"""
Lane Assignment Logic

Buckets every open action into exactly one lane, evaluated in order:

    priority   High priority, or overdue (days_overdue > 0)
    in_motion  the action's relationship had an interaction within the
               in-motion window (conversation is live)
    on_deck    everything else

next_move_score composition (higher = do sooner):

    lane band        priority 3000 / in_motion 2000 / on_deck 1000
    level            weight * 100 (High 300, Medium 200, Low 100)
    days overdue     clamped to [-30, 59], shifted to 0..89
    effort           1 / (1 + estimated_minutes), 0 when unknown

Each component is strictly smaller than the step of the one above it, so
sorting by score alone reproduces lane order, then level, then lateness,
then shorter tasks. Ties fall back to due_date then id.
"""

import logging
from datetime import datetime

from nextmove.dates import whole_days_between
from nextmove.models import Action, Lane, LaneAssignment, PriorityLevel, PriorityResult, Relationship
from nextmove.policy import PlanningPolicy, default_policy
from nextmove.priority import classify_priority

logger = logging.getLogger(__name__)

LANE_BANDS = {
    Lane.PRIORITY: 3000,
    Lane.IN_MOTION: 2000,
    Lane.ON_DECK: 1000,
}

LEVEL_STEP = 100
OVERDUE_FLOOR = -30
OVERDUE_CEILING = 59

BEST_ACTION_LANES = (Lane.PRIORITY, Lane.IN_MOTION)


def next_move_score(lane: Lane, level: PriorityLevel, days_overdue: int, estimated_minutes: int | None) -> float:
    overdue = min(max(days_overdue, OVERDUE_FLOOR), OVERDUE_CEILING) - OVERDUE_FLOOR
    effort = 1 / (1 + estimated_minutes) if estimated_minutes else 0.0
    return round(LANE_BANDS[lane] + level.weight * LEVEL_STEP + overdue + effort, 4)


def is_in_motion(relationship: Relationship | None, now: datetime, window_days: int) -> bool:
    """Live conversation: last interaction no more than window_days ago."""
    if relationship is None or relationship.last_interaction_at is None:
        return False
    return whole_days_between(now, relationship.last_interaction_at) <= window_days


def _lane_for(
    priority: PriorityResult,
    relationship: Relationship | None,
    now: datetime,
    policy: PlanningPolicy,
) -> tuple[Lane, str]:
    if priority.level == PriorityLevel.HIGH:
        return Lane.PRIORITY, priority.reason
    if priority.days_overdue > 0:
        days = priority.days_overdue
        return Lane.PRIORITY, f"Overdue by {days} day{'' if days == 1 else 's'}"
    if is_in_motion(relationship, now, policy.in_motion_window_days):
        return Lane.IN_MOTION, f"Conversation active in the last {policy.in_motion_window_days} days"
    return Lane.ON_DECK, "Not urgent and no live conversation"


def assign_lanes(
    actions: list[Action],
    now: datetime,
    relationships: dict[str, Relationship] | None = None,
    policy: PlanningPolicy | None = None,
) -> dict[str, LaneAssignment]:
    """
    One LaneAssignment per open action, keyed by action id.

    DONE and ARCHIVED actions are skipped. SENT actions stay in (they are
    awaiting a reply) and are filtered later by the planner.
    """
    policy = policy or default_policy()
    relationships = relationships or {}

    assignments: dict[str, LaneAssignment] = {}
    for action in actions:
        if not action.is_open:
            logger.debug("Skipping closed action %s (%s)", action.id, action.state.value)
            continue
        if action.id in assignments:
            logger.warning("Duplicate action id %s, keeping the first", action.id)
            continue

        rel = relationships.get(action.person_id) if action.person_id else None
        priority = classify_priority(action, rel, now)
        lane, reason = _lane_for(priority, rel, now, policy)

        assignments[action.id] = LaneAssignment(
            action_id=action.id,
            lane=lane,
            next_move_score=next_move_score(lane, priority.level, priority.days_overdue, action.estimated_minutes),
            priority=priority,
            days_overdue=priority.days_overdue,
            due_date=action.due_date,
            reason=reason,
        )

    return assignments


def _sort_key(assignment: LaneAssignment):
    return (-assignment.next_move_score, assignment.due_date, assignment.action_id)


def rank_assignments(assignments) -> list[LaneAssignment]:
    """Score descending, then due_date ascending, then id."""
    if isinstance(assignments, dict):
        assignments = assignments.values()
    return sorted(assignments, key=_sort_key)


def select_best_action(assignments) -> str | None:
    """Highest-ranked id across priority and in_motion, or None."""
    for assignment in rank_assignments(assignments):
        if assignment.lane in BEST_ACTION_LANES:
            return assignment.action_id
    return None


def actions_by_lane(assignments) -> dict[Lane, list[str]]:
    """Ranked ids grouped by lane. Every lane is present, possibly empty."""
    grouped: dict[Lane, list[str]] = {lane: [] for lane in Lane}
    for assignment in rank_assignments(assignments):
        grouped[assignment.lane].append(assignment.action_id)
    return grouped


def action_for_duration(
    actions: list[Action],
    assignments,
    minutes: int,
) -> Action | None:
    """Best-ranked action with a known estimate that fits in `minutes`."""
    by_id = {a.id: a for a in actions}
    for assignment in rank_assignments(assignments):
        action = by_id.get(assignment.action_id)
        if action is None or action.estimated_minutes is None:
            continue
        if action.estimated_minutes <= minutes:
            return action
    return None
