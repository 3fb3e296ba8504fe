# NextMove - action prioritization and daily capacity planning
"""
Exports for the API, the CLI and other consumers.
"""

from .daily_plan import build_daily_plan
from .errors import CalendarUnavailable, PolicyError, ValidationError
from .lane_assigner import (
    action_for_duration,
    actions_by_lane,
    assign_lanes,
    rank_assignments,
    select_best_action,
)
from .models import (
    Action,
    ActionState,
    ActionType,
    CapacityOverride,
    CapacitySource,
    CapacityTier,
    CompletionDay,
    DailyPlan,
    Lane,
    PriorityLevel,
    Relationship,
)
from .policy import PlanningPolicy, default_policy, load_policy
from .priority import classify_many, classify_priority, compute_urgency_label, describe_priority
from .promise_tracker import (
    calculate_end_of_week,
    calculate_eod,
    format_promise,
    is_promise_overdue,
    overdue_promises,
    resolve_promise,
)
from .stall_detector import count_awaiting_response, detect_stall, detect_stalls

__version__ = "0.1.0"

__all__ = [
    "build_daily_plan",
    "classify_priority",
    "classify_many",
    "compute_urgency_label",
    "describe_priority",
    "calculate_eod",
    "calculate_end_of_week",
    "is_promise_overdue",
    "format_promise",
    "resolve_promise",
    "overdue_promises",
    "detect_stall",
    "detect_stalls",
    "count_awaiting_response",
    "assign_lanes",
    "select_best_action",
    "rank_assignments",
    "actions_by_lane",
    "action_for_duration",
    "PlanningPolicy",
    "load_policy",
    "default_policy",
    "Action",
    "ActionState",
    "ActionType",
    "CapacityOverride",
    "CapacitySource",
    "CapacityTier",
    "CompletionDay",
    "DailyPlan",
    "Lane",
    "PriorityLevel",
    "Relationship",
    "ValidationError",
    "PolicyError",
    "CalendarUnavailable",
]
