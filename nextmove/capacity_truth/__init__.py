"""
Capacity Truth Module

Sizes the daily plan.

Objects:
- CapacityDecision (tier, max actions, where the tier came from)
- CompletionDay history (drives adaptive recovery)

Invariants:
- override beats recovery beats user default beats calendar
- a failed calendar lookup degrades to default minutes
"""

from .calculator import (
    capacity_description,
    capacity_label,
    read_free_minutes,
    resolve_capacity,
)
from .free_time import calculate_free_minutes, merge_busy_slots
from .recovery import (
    eligible_days,
    has_high_completion_streak,
    has_low_completion_pattern,
    is_adaptive_recovery,
    is_missed_day,
    recovery_tier,
)

__all__ = [
    "calculate_free_minutes",
    "capacity_description",
    "capacity_label",
    "eligible_days",
    "has_high_completion_streak",
    "has_low_completion_pattern",
    "is_adaptive_recovery",
    "is_missed_day",
    "merge_busy_slots",
    "read_free_minutes",
    "recovery_tier",
    "resolve_capacity",
]
