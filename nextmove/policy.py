"""
Planning Policy — every tunable table the engine consults.

Capacity bands, tier sizes, stall thresholds, escalation paths and the
recovery rule are product policy, not algorithm. They load from
config/planning_policy.yaml and fall back to the built-in defaults below
when the file is missing.

Numbers here are starting points agreed for launch; change the YAML, not
the planner.
"""

import logging
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path

import yaml

from nextmove import paths
from nextmove.errors import PolicyError
from nextmove.models import CapacityTier, Channel, NudgeType

logger = logging.getLogger(__name__)

# =============================================================================
# DEFAULTS
# =============================================================================

_DEFAULT_TIER_ACTIONS = {
    CapacityTier.MICRO: 2,
    CapacityTier.LIGHT: 3,
    CapacityTier.STANDARD: 6,
    CapacityTier.HEAVY: 8,
}

# (exclusive upper bound in free minutes, tier); anything above → heavy
_DEFAULT_MINUTE_BANDS = [
    (30, CapacityTier.MICRO),
    (90, CapacityTier.LIGHT),
    (240, CapacityTier.STANDARD),
]

_DEFAULT_STALL_THRESHOLDS = {
    Channel.LINKEDIN: 3,
    Channel.EMAIL: 5,
    Channel.TEXT: 2,
    Channel.OTHER: 4,
}

_DEFAULT_CADENCE_PRESETS = {
    "frequent": 7,
    "moderate": 14,
    "infrequent": 30,
    "ad_hoc": 90,
}


@dataclass(frozen=True)
class EscalationStep:
    nudge_type: NudgeType
    suggested_channel: str
    suggestion: str


_DEFAULT_ESCALATIONS = {
    Channel.LINKEDIN: EscalationStep(NudgeType.ESCALATE_CHANNEL, "email", "Move this to email"),
    Channel.TEXT: EscalationStep(NudgeType.ESCALATE_CHANNEL, "email", "Move this to email"),
    Channel.EMAIL: EscalationStep(NudgeType.ASK_FOR_CALL, "call", "Ask for a call"),
    Channel.OTHER: EscalationStep(NudgeType.ASK_FOR_CALL, "call", "Ask for a call"),
}


@dataclass(frozen=True)
class RecoveryRule:
    window_days: int = 3
    min_missed: int = 2
    missed_below_rate: float = 0.5


@dataclass(frozen=True)
class PlanningPolicy:
    tier_actions: dict[CapacityTier, int] = field(default_factory=lambda: dict(_DEFAULT_TIER_ACTIONS))
    minute_bands: list[tuple[int, CapacityTier]] = field(default_factory=lambda: list(_DEFAULT_MINUTE_BANDS))
    top_tier: CapacityTier = CapacityTier.HEAVY
    default_free_minutes: int = 120
    fast_win_max_minutes: int = 5
    in_motion_window_days: int = 14
    plan_horizon_days: int = 0
    stall_thresholds: dict[Channel, int] = field(default_factory=lambda: dict(_DEFAULT_STALL_THRESHOLDS))
    escalations: dict[Channel, EscalationStep] = field(default_factory=lambda: dict(_DEFAULT_ESCALATIONS))
    cadence_presets: dict[str, int] = field(default_factory=lambda: dict(_DEFAULT_CADENCE_PRESETS))
    recovery: RecoveryRule = field(default_factory=RecoveryRule)
    default_work_end_time: str = "17:00"
    exclude_weekends: bool = False

    def actions_for_tier(self, tier: CapacityTier) -> int:
        return self.tier_actions[tier]

    def tier_for_minutes(self, free_minutes: int) -> CapacityTier:
        for upper, tier in self.minute_bands:
            if free_minutes < upper:
                return tier
        return self.top_tier


# =============================================================================
# LOADING
# =============================================================================


def load_policy(path: Path | None = None) -> PlanningPolicy:
    """
    Load the policy YAML on top of the built-in defaults.

    Missing or unreadable file → defaults (logged). Readable file with
    values the engine cannot use → PolicyError.
    """
    if path is None:
        path = paths.policy_path()
    data = _load_yaml(path)
    return _build_policy(data)


@lru_cache(maxsize=1)
def default_policy() -> PlanningPolicy:
    """Process-wide policy, loaded once."""
    return load_policy()


def _load_yaml(path: Path) -> dict:
    if not path.exists():
        logger.warning("Planning policy not found at %s, using defaults", path)
        return {}
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except (yaml.YAMLError, OSError) as exc:
        logger.error("Failed to load planning policy from %s: %s", path, exc)
        return {}
    if not isinstance(data, dict):
        raise PolicyError(f"Planning policy at {path} must be a mapping.")
    return data


def _build_policy(data: dict) -> PlanningPolicy:
    defaults = PlanningPolicy()

    tier_actions = dict(defaults.tier_actions)
    for name, count in (data.get("tier_actions") or {}).items():
        tier_actions[_tier(name)] = _positive_int(count, f"tier_actions.{name}")

    minute_bands = defaults.minute_bands
    top_tier = defaults.top_tier
    bands_raw = data.get("minute_bands")
    if bands_raw is not None:
        minute_bands, top_tier = _parse_bands(bands_raw)

    stall_thresholds = dict(defaults.stall_thresholds)
    for name, days in (data.get("stall_thresholds") or {}).items():
        stall_thresholds[_channel(name)] = _positive_int(days, f"stall_thresholds.{name}")

    escalations = dict(defaults.escalations)
    for name, step in (data.get("escalations") or {}).items():
        if not isinstance(step, dict):
            raise PolicyError(f"escalations.{name} must be a mapping.")
        try:
            nudge_type = NudgeType(step.get("nudge_type"))
        except ValueError as exc:
            raise PolicyError(f"escalations.{name}.nudge_type is not a known nudge type.") from exc
        escalations[_channel(name)] = EscalationStep(
            nudge_type=nudge_type,
            suggested_channel=str(step.get("suggested_channel") or "call"),
            suggestion=str(step.get("suggestion") or "Ask for a call"),
        )

    cadence_presets = dict(defaults.cadence_presets)
    for name, days in (data.get("cadence_presets") or {}).items():
        cadence_presets[str(name)] = _positive_int(days, f"cadence_presets.{name}")

    recovery_raw = data.get("recovery") or {}
    recovery = RecoveryRule(
        window_days=_positive_int(recovery_raw.get("window_days", defaults.recovery.window_days), "recovery.window_days"),
        min_missed=_positive_int(recovery_raw.get("min_missed", defaults.recovery.min_missed), "recovery.min_missed"),
        missed_below_rate=_rate(
            recovery_raw.get("missed_below_rate", defaults.recovery.missed_below_rate), "recovery.missed_below_rate"
        ),
    )

    return PlanningPolicy(
        tier_actions=tier_actions,
        minute_bands=minute_bands,
        top_tier=top_tier,
        default_free_minutes=_non_negative_int(
            data.get("default_free_minutes", defaults.default_free_minutes), "default_free_minutes"
        ),
        fast_win_max_minutes=_positive_int(
            data.get("fast_win_max_minutes", defaults.fast_win_max_minutes), "fast_win_max_minutes"
        ),
        in_motion_window_days=_positive_int(
            data.get("in_motion_window_days", defaults.in_motion_window_days), "in_motion_window_days"
        ),
        plan_horizon_days=_non_negative_int(
            data.get("plan_horizon_days", defaults.plan_horizon_days), "plan_horizon_days"
        ),
        stall_thresholds=stall_thresholds,
        escalations=escalations,
        cadence_presets=cadence_presets,
        recovery=recovery,
        default_work_end_time=str(data.get("default_work_end_time", defaults.default_work_end_time)),
        exclude_weekends=bool(data.get("exclude_weekends", defaults.exclude_weekends)),
    )


def _parse_bands(bands_raw) -> tuple[list[tuple[int, CapacityTier]], CapacityTier]:
    """
    Bands look like:
        - {below: 30, tier: micro}
        - {below: 90, tier: light}
        - {tier: heavy}          # catch-all, last
    """
    if not isinstance(bands_raw, list) or not bands_raw:
        raise PolicyError("minute_bands must be a non-empty list.")

    bands: list[tuple[int, CapacityTier]] = []
    top_tier: CapacityTier | None = None
    last_upper = -1
    for i, band in enumerate(bands_raw):
        if not isinstance(band, dict):
            raise PolicyError(f"minute_bands[{i}] must be a mapping.")
        tier = _tier(band.get("tier"))
        if "below" not in band:
            if i != len(bands_raw) - 1:
                raise PolicyError("Only the last minute band may omit 'below'.")
            top_tier = tier
            continue
        upper = _positive_int(band["below"], f"minute_bands[{i}].below")
        if upper <= last_upper:
            raise PolicyError("minute_bands must be in ascending order.")
        last_upper = upper
        bands.append((upper, tier))

    if top_tier is None:
        raise PolicyError("minute_bands needs a final catch-all band without 'below'.")
    return bands, top_tier


def _tier(name) -> CapacityTier:
    try:
        return CapacityTier(name)
    except ValueError as exc:
        raise PolicyError(f"Unknown capacity tier: {name!r}") from exc


def _channel(name) -> Channel:
    try:
        return Channel(name)
    except ValueError as exc:
        raise PolicyError(f"Unknown channel: {name!r}") from exc


def _positive_int(value, name: str) -> int:
    number = _non_negative_int(value, name)
    if number == 0:
        raise PolicyError(f"{name} must be positive.")
    return number


def _non_negative_int(value, name: str) -> int:
    if isinstance(value, bool):
        raise PolicyError(f"{name} must be an integer.")
    try:
        number = int(value)
    except (TypeError, ValueError) as exc:
        raise PolicyError(f"{name} must be an integer.") from exc
    if number < 0:
        raise PolicyError(f"{name} must not be negative.")
    return number


def _rate(value, name: str) -> float:
    try:
        rate = float(value)
    except (TypeError, ValueError) as exc:
        raise PolicyError(f"{name} must be a number.") from exc
    if not 0.0 <= rate <= 1.0:
        raise PolicyError(f"{name} must be between 0 and 1.")
    return rate
