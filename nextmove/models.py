"""
Core records for the planning engine.

Actions and Relationships arrive from the store adapter (as dicts or already
built). Everything else here is derived per evaluation and never persisted
by the engine itself.

Invariants assumed at read time (transitions are external):
- snooze_until is set iff state == SNOOZED
- completed_at is set iff state in {DONE, SENT, REPLIED}
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any

from nextmove.dates import parse_local_date, parse_timestamp
from nextmove.errors import ValidationError

logger = logging.getLogger(__name__)


# =============================================================================
# ENUMERATIONS
# =============================================================================


class ActionType(str, Enum):
    OUTREACH = "OUTREACH"
    FOLLOW_UP = "FOLLOW_UP"
    NURTURE = "NURTURE"
    CALL_PREP = "CALL_PREP"
    POST_CALL = "POST_CALL"
    CONTENT = "CONTENT"
    FAST_WIN = "FAST_WIN"


class ActionState(str, Enum):
    NEW = "NEW"
    SENT = "SENT"
    REPLIED = "REPLIED"
    SNOOZED = "SNOOZED"
    DONE = "DONE"
    ARCHIVED = "ARCHIVED"

    @property
    def display_status(self) -> str:
        """User-facing status: pending | waiting | snoozed | done."""
        return _DISPLAY_STATUS[self]


_DISPLAY_STATUS = {
    ActionState.NEW: "pending",
    ActionState.SENT: "waiting",
    ActionState.SNOOZED: "snoozed",
    ActionState.DONE: "done",
    ActionState.REPLIED: "done",
    ActionState.ARCHIVED: "done",
}

CLOSED_STATES = frozenset({ActionState.DONE, ActionState.ARCHIVED})
"""States that take an action out of lane assignment entirely."""

COMPLETED_STATES = frozenset({ActionState.DONE, ActionState.SENT, ActionState.REPLIED})
"""States that carry a completed_at timestamp."""


class PriorityLevel(str, Enum):
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"

    @property
    def weight(self) -> int:
        return {"High": 3, "Medium": 2, "Low": 1}[self.value]


class Lane(str, Enum):
    PRIORITY = "priority"
    IN_MOTION = "in_motion"
    ON_DECK = "on_deck"

    @property
    def rank(self) -> int:
        """0 for priority, 1 for in_motion, 2 for on_deck."""
        return _LANE_ORDER.index(self)


_LANE_ORDER = [Lane.PRIORITY, Lane.IN_MOTION, Lane.ON_DECK]


class CapacityTier(str, Enum):
    MICRO = "micro"
    LIGHT = "light"
    STANDARD = "standard"
    HEAVY = "heavy"


class CapacitySource(str, Enum):
    """Where a plan's capacity tier came from."""

    OVERRIDE = "override"
    RECOVERY = "recovery"
    USER_DEFAULT = "user_default"
    CALENDAR = "calendar"
    DEFAULT = "default"


class Channel(str, Enum):
    LINKEDIN = "linkedin"
    EMAIL = "email"
    TEXT = "text"
    OTHER = "other"


class NudgeType(str, Enum):
    ESCALATE_CHANNEL = "escalate_channel"
    ASK_FOR_CALL = "ask_for_call"


def _enum(enum_cls, value, field_name: str):
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError as exc:
        allowed = ", ".join(m.value for m in enum_cls)
        raise ValidationError(f"{field_name} must be one of: {allowed}") from exc


def _optional_enum(enum_cls, value, field_name: str):
    if value is None or value == "":
        return None
    return _enum(enum_cls, value, field_name)


def _iso(value: date | datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _count(value, field_name: str) -> int:
    if value is None or value == "":
        return 0
    if isinstance(value, bool):
        raise ValidationError(f"{field_name} must be a whole number.")
    try:
        number = int(value)
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"{field_name} must be a whole number.") from exc
    if number < 0:
        raise ValidationError(f"{field_name} must not be negative.")
    return number


# =============================================================================
# INPUT RECORDS
# =============================================================================


@dataclass
class Action:
    """A unit of outreach work."""

    id: str
    action_type: ActionType
    state: ActionState
    due_date: date
    person_id: str | None = None
    snooze_until: date | None = None
    promised_due_at: datetime | None = None
    estimated_minutes: int | None = None
    auto_created: bool = False
    created_at: datetime | None = None
    completed_at: datetime | None = None
    description: str | None = None

    @property
    def is_open(self) -> bool:
        return self.state not in CLOSED_STATES

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Action":
        """
        Build from an adapter row.

        Required fields that are missing or malformed raise ValidationError.
        Optional dates that fail to parse degrade to None.
        """
        action_id = data.get("id")
        if action_id is None or str(action_id).strip() == "":
            raise ValidationError("id is required.")

        due = parse_local_date(data.get("due_date"))
        if due is None:
            raise ValidationError(f"Action {action_id}: due_date must be YYYY-MM-DD.")

        minutes = data.get("estimated_minutes")
        if minutes is not None:
            try:
                minutes = int(minutes)
            except (TypeError, ValueError):
                logger.warning("Action %s: ignoring estimated_minutes=%r", action_id, minutes)
                minutes = None
            else:
                if minutes <= 0:
                    minutes = None

        person_id = data.get("person_id")
        return cls(
            id=str(action_id),
            action_type=_enum(ActionType, data.get("action_type"), "action_type"),
            state=_enum(ActionState, data.get("state"), "state"),
            due_date=due,
            person_id=str(person_id) if person_id is not None else None,
            snooze_until=parse_local_date(data.get("snooze_until")),
            promised_due_at=parse_timestamp(data.get("promised_due_at")),
            estimated_minutes=minutes,
            auto_created=bool(data.get("auto_created", False)),
            created_at=parse_timestamp(data.get("created_at")),
            completed_at=parse_timestamp(data.get("completed_at")),
            description=data.get("description"),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "action_type": self.action_type.value,
            "state": self.state.value,
            "status": self.state.display_status,
            "due_date": self.due_date.isoformat(),
            "person_id": self.person_id,
            "snooze_until": _iso(self.snooze_until),
            "promised_due_at": _iso(self.promised_due_at),
            "estimated_minutes": self.estimated_minutes,
            "auto_created": self.auto_created,
            "created_at": _iso(self.created_at),
            "completed_at": _iso(self.completed_at),
            "description": self.description,
        }


@dataclass
class Relationship:
    """A tracked person (lead)."""

    id: str
    name: str
    preferred_channel: Channel | None = None
    cadence_days: int | None = None
    last_interaction_at: datetime | None = None
    cadence: str | None = None  # frequent | moderate | infrequent | ad_hoc

    def effective_cadence_days(self, presets: dict[str, int]) -> int | None:
        """Explicit cadence_days, else the preset's days, else None."""
        if self.cadence_days:
            return self.cadence_days
        if self.cadence:
            return presets.get(self.cadence)
        return None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Relationship":
        rel_id = data.get("id")
        if rel_id is None or str(rel_id).strip() == "":
            raise ValidationError("Relationship id is required.")

        cadence_days = data.get("cadence_days")
        if cadence_days is not None:
            try:
                cadence_days = int(cadence_days)
            except (TypeError, ValueError):
                logger.warning("Relationship %s: ignoring cadence_days=%r", rel_id, cadence_days)
                cadence_days = None
            else:
                if cadence_days <= 0:
                    cadence_days = None

        return cls(
            id=str(rel_id),
            name=data.get("name") or "",
            preferred_channel=_optional_enum(Channel, data.get("preferred_channel"), "preferred_channel"),
            cadence_days=cadence_days,
            last_interaction_at=parse_timestamp(data.get("last_interaction_at")),
            cadence=data.get("cadence"),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "preferred_channel": self.preferred_channel.value if self.preferred_channel else None,
            "cadence_days": self.cadence_days,
            "last_interaction_at": _iso(self.last_interaction_at),
            "cadence": self.cadence,
        }


@dataclass
class CapacityOverride:
    """A manual capacity choice for one plan date."""

    tier: CapacityTier
    reason: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CapacityOverride":
        return cls(tier=_enum(CapacityTier, data.get("tier"), "tier"), reason=data.get("reason"))


@dataclass
class CompletionDay:
    """How one past daily plan went."""

    date: date
    planned: int
    completed: int
    capacity_source: CapacitySource | None = None

    @property
    def completion_rate(self) -> float:
        if self.planned <= 0:
            return 0.0
        return min(1.0, self.completed / self.planned)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CompletionDay":
        day = parse_local_date(data.get("date"))
        if day is None:
            raise ValidationError("Completion history entries need a date.")
        return cls(
            date=day,
            planned=_count(data.get("planned"), "planned"),
            completed=_count(data.get("completed"), "completed"),
            capacity_source=_optional_enum(CapacitySource, data.get("capacity_source"), "capacity_source"),
        )


@dataclass
class BusySlot:
    start: datetime
    end: datetime


# =============================================================================
# DERIVED RECORDS
# =============================================================================


@dataclass
class PriorityResult:
    """Priority for one action at one instant."""

    level: PriorityLevel
    reason: str
    urgency_label: str | None = None
    days_overdue: int = 0

    @property
    def message(self) -> str:
        """Single user-facing line: level, urgency (if any), reason."""
        parts = [f"{self.level.value} priority"]
        if self.urgency_label:
            parts.append(self.urgency_label)
        parts.append(self.reason)
        return ". ".join(parts)

    def to_dict(self) -> dict:
        return {
            "level": self.level.value,
            "reason": self.reason,
            "urgency_label": self.urgency_label,
            "days_overdue": self.days_overdue,
            "message": self.message,
        }


@dataclass
class LaneAssignment:
    action_id: str
    lane: Lane
    next_move_score: float
    priority: PriorityResult
    days_overdue: int
    due_date: date
    reason: str = ""

    def to_dict(self) -> dict:
        return {
            "action_id": self.action_id,
            "lane": self.lane.value,
            "next_move_score": self.next_move_score,
            "priority": self.priority.level.value,
            "days_overdue": self.days_overdue,
            "due_date": self.due_date.isoformat(),
            "reason": self.reason,
        }


@dataclass
class StallNudge:
    relationship_id: str
    relationship_name: str
    preferred_channel: Channel
    days_since_last_interaction: int
    cadence_days: int | None
    threshold_days: int
    nudge_type: NudgeType
    suggested_channel: str
    suggestion: str

    def to_dict(self) -> dict:
        return {
            "relationship_id": self.relationship_id,
            "relationship_name": self.relationship_name,
            "preferred_channel": self.preferred_channel.value,
            "days_since_last_interaction": self.days_since_last_interaction,
            "cadence_days": self.cadence_days,
            "threshold_days": self.threshold_days,
            "nudge_type": self.nudge_type.value,
            "suggested_channel": self.suggested_channel,
            "suggestion": self.suggestion,
        }


@dataclass
class CapacityDecision:
    tier: CapacityTier
    max_actions: int
    source: CapacitySource
    free_minutes: int | None = None
    reason: str | None = None
    recovery_day: int = 0  # 1 on the first recovery day, 2+ afterwards


@dataclass
class DailyPlan:
    """
    One user's plan for one date.

    `actions` excludes the fast win; the fast win still counts toward
    max_actions. `all_actions` lists it first.
    """

    user_id: str
    date: date
    capacity_tier: CapacityTier
    max_actions: int
    capacity_source: CapacitySource
    fast_win: Action | None = None
    actions: list[Action] = field(default_factory=list)
    free_minutes: int | None = None
    override_reason: str | None = None
    generated_at: datetime | None = None
    skipped_reason: str | None = None

    @property
    def all_actions(self) -> list[Action]:
        head = [self.fast_win] if self.fast_win is not None else []
        return head + list(self.actions)

    @property
    def action_ids(self) -> list[str]:
        return [a.id for a in self.all_actions]

    @property
    def is_recovery(self) -> bool:
        return self.capacity_source == CapacitySource.RECOVERY

    def to_dict(self) -> dict:
        return {
            "user_id": self.user_id,
            "date": self.date.isoformat(),
            "capacity_tier": self.capacity_tier.value,
            "max_actions": self.max_actions,
            "capacity_source": self.capacity_source.value,
            "free_minutes": self.free_minutes,
            "override_reason": self.override_reason,
            "fast_win": self.fast_win.to_dict() if self.fast_win else None,
            "actions": [a.to_dict() for a in self.actions],
            "action_ids": self.action_ids,
            "generated_at": _iso(self.generated_at),
            "skipped_reason": self.skipped_reason,
        }
