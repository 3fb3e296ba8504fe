"""
Stall Detector — spot conversations that went quiet on their channel.

A relationship is stalled when:
- it has a preferred channel and a last interaction,
- at least one of its actions is SENT (we are waiting on them), and
- days since the last interaction >= threshold.

Threshold is the relationship's cadence when it has one, otherwise the
channel default from the planning policy. The nudge proposes the next step
on the escalation path for that channel. Nothing is persisted; nudges are
re-derived on every call.
"""

import logging
from collections import Counter
from datetime import datetime

from nextmove.dates import whole_days_between
from nextmove.models import Action, ActionState, Channel, Relationship, StallNudge
from nextmove.policy import PlanningPolicy, default_policy

logger = logging.getLogger(__name__)

CHANNEL_LABELS = {
    Channel.LINKEDIN: "LinkedIn",
    Channel.EMAIL: "Email",
    Channel.TEXT: "Text",
    Channel.OTHER: "Other",
}


def channel_label(channel: Channel | str | None) -> str:
    if channel is None:
        return "Not set"
    try:
        return CHANNEL_LABELS[Channel(channel)]
    except ValueError:
        return str(channel)


def stall_threshold(relationship: Relationship, policy: PlanningPolicy) -> int | None:
    """Days of silence that count as a stall, or None without a channel."""
    cadence = relationship.effective_cadence_days(policy.cadence_presets)
    if cadence:
        return cadence
    if relationship.preferred_channel is None:
        return None
    return policy.stall_thresholds.get(relationship.preferred_channel)


def detect_stall(
    relationship: Relationship,
    pending_count: int,
    now: datetime,
    policy: PlanningPolicy | None = None,
) -> StallNudge | None:
    """At most one nudge for this relationship, or None."""
    policy = policy or default_policy()

    if relationship.preferred_channel is None or relationship.last_interaction_at is None:
        return None
    if pending_count < 1:
        return None

    threshold = stall_threshold(relationship, policy)
    if threshold is None:
        return None

    days_since = whole_days_between(now, relationship.last_interaction_at)
    if days_since < threshold:
        return None

    step = policy.escalations.get(relationship.preferred_channel)
    if step is None:
        logger.warning("No escalation path for channel %s", relationship.preferred_channel.value)
        return None

    logger.debug(
        "Relationship %s stalled: %d days on %s (threshold %d)",
        relationship.id,
        days_since,
        relationship.preferred_channel.value,
        threshold,
    )
    return StallNudge(
        relationship_id=relationship.id,
        relationship_name=relationship.name,
        preferred_channel=relationship.preferred_channel,
        days_since_last_interaction=days_since,
        cadence_days=relationship.effective_cadence_days(policy.cadence_presets),
        threshold_days=threshold,
        nudge_type=step.nudge_type,
        suggested_channel=step.suggested_channel,
        suggestion=step.suggestion,
    )


def count_awaiting_response(actions: list[Action]) -> dict[str, int]:
    """SENT actions per relationship id."""
    counts = Counter(a.person_id for a in actions if a.state == ActionState.SENT and a.person_id)
    return dict(counts)


def detect_stalls(
    relationships: list[Relationship],
    actions: list[Action],
    now: datetime,
    policy: PlanningPolicy | None = None,
) -> list[StallNudge]:
    """Nudges for every stalled relationship, longest silence first."""
    policy = policy or default_policy()
    pending = count_awaiting_response(actions)

    nudges = []
    for rel in relationships:
        nudge = detect_stall(rel, pending.get(rel.id, 0), now, policy)
        if nudge is not None:
            nudges.append(nudge)

    nudges.sort(key=lambda n: (-n.days_since_last_interaction, n.relationship_id))
    return nudges
