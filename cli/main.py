#!/usr/bin/env python3
"""
NextMove CLI - plan a day from an action snapshot.

Reads a YAML or JSON snapshot:

    actions: [...]               # action rows
    relationships: [...]         # lead rows
    completion_history: [...]    # {date, planned, completed, capacity_source}
    default_tier: standard       # optional

Commands:
    priorities   priority and urgency per action
    lanes        priority / in_motion / on_deck buckets, ranked
    stalls       stalled conversations with escalation suggestions
    plan         the daily plan for --date
"""

import argparse
import json
import logging
import sys
from datetime import datetime
from pathlib import Path

import yaml

from nextmove import config
from nextmove.capacity_truth import capacity_description, capacity_label
from nextmove.daily_plan import build_daily_plan
from nextmove.dates import local_today, parse_local_date, parse_timestamp
from nextmove.errors import PolicyError, ValidationError
from nextmove.lane_assigner import actions_by_lane, assign_lanes, select_best_action
from nextmove.models import Action, CapacityOverride, CapacityTier, CompletionDay, Relationship
from nextmove.observability import RequestContext, configure_logging
from nextmove.priority import classify_many
from nextmove.stall_detector import channel_label, detect_stalls

logger = logging.getLogger(__name__)


def print_header(text: str):
    """Print a section header."""
    print(f"\n{'═' * 60}")
    print(f"  {text}")
    print(f"{'═' * 60}")


def print_table(headers: list, rows: list, widths: list = None):
    """Print a simple table."""
    if not widths:
        widths = [max(len(str(row[i])) for row in [headers] + rows) for i in range(len(headers))]

    header_str = " │ ".join(str(h).ljust(w) for h, w in zip(headers, widths))
    print(header_str)
    print("─" * len(header_str))
    for row in rows:
        print(" │ ".join(str(c)[:w].ljust(w) for c, w in zip(row, widths)))


def print_json(data):
    print(json.dumps(data, indent=2, default=str))


# =============================================================================
# SNAPSHOT
# =============================================================================


class Snapshot:
    def __init__(self, data: dict):
        self.actions = [Action.from_dict(row) for row in data.get("actions") or []]
        rels = [Relationship.from_dict(row) for row in data.get("relationships") or []]
        self.relationships = {r.id: r for r in rels}
        self.completion_history = [CompletionDay.from_dict(row) for row in data.get("completion_history") or []]
        default_tier = data.get("default_tier")
        self.default_tier = CapacityTier(default_tier) if default_tier else None

    @classmethod
    def load(cls, path: Path) -> "Snapshot":
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ValidationError(f"Snapshot {path} must be a mapping.")
        return cls(data)


def _action_label(action: Action) -> str:
    return action.description or action.id


# =============================================================================
# COMMANDS
# =============================================================================


def cmd_priorities(snapshot: Snapshot, now: datetime, args) -> int:
    results = classify_many(snapshot.actions, now, snapshot.relationships)
    if args.json:
        print_json({action_id: r.to_dict() for action_id, r in results.items()})
        return 0

    print_header(f"PRIORITIES @ {now:%Y-%m-%d %H:%M}")
    if not results:
        print("No actions.")
        return 0

    by_id = {a.id: a for a in snapshot.actions}
    rows = [
        [
            action_id,
            r.level.value,
            by_id[action_id].action_type.value,
            r.urgency_label or "-",
            r.reason,
        ]
        for action_id, r in results.items()
    ]
    print_table(["ID", "Level", "Type", "Urgency", "Reason"], rows, [12, 6, 10, 16, 60])
    return 0


def cmd_lanes(snapshot: Snapshot, now: datetime, args) -> int:
    assignments = assign_lanes(snapshot.actions, now, snapshot.relationships)
    grouped = actions_by_lane(assignments)
    best = select_best_action(assignments)

    if args.json:
        print_json(
            {
                "best_action_id": best,
                "lanes": {lane.value: [assignments[i].to_dict() for i in ids] for lane, ids in grouped.items()},
            }
        )
        return 0

    for lane, ids in grouped.items():
        print_header(f"{lane.value.upper()} ({len(ids)})")
        if not ids:
            print("  (empty)")
            continue
        rows = [
            [
                "★" if i == best else "",
                i,
                f"{assignments[i].next_move_score:.2f}",
                assignments[i].priority.level.value,
                assignments[i].due_date.isoformat(),
                assignments[i].reason,
            ]
            for i in ids
        ]
        print_table(["", "ID", "Score", "Level", "Due", "Reason"], rows, [1, 12, 8, 6, 10, 50])
    return 0


def cmd_stalls(snapshot: Snapshot, now: datetime, args) -> int:
    nudges = detect_stalls(list(snapshot.relationships.values()), snapshot.actions, now)
    if args.json:
        print_json([n.to_dict() for n in nudges])
        return 0

    print_header(f"STALLED CONVERSATIONS ({len(nudges)})")
    if not nudges:
        print("No stalled conversations.")
        return 0
    rows = [
        [
            n.relationship_name or n.relationship_id,
            channel_label(n.preferred_channel),
            n.days_since_last_interaction,
            n.threshold_days,
            n.suggestion,
        ]
        for n in nudges
    ]
    print_table(["Lead", "Channel", "Days", "Limit", "Suggestion"], rows, [24, 8, 4, 5, 30])
    return 0


def cmd_plan(snapshot: Snapshot, now: datetime, args) -> int:
    plan_date = parse_local_date(args.date) if args.date else local_today(now)
    if plan_date is None:
        raise ValidationError(f"Invalid --date: {args.date!r}")

    override = None
    if args.override:
        override = CapacityOverride.from_dict({"tier": args.override, "reason": args.reason})

    with RequestContext(user_id=args.user):
        plan = build_daily_plan(
            args.user,
            plan_date,
            snapshot.actions,
            free_minutes=args.free_minutes,
            manual_override=override,
            completion_history=snapshot.completion_history,
            now=now,
            relationships=snapshot.relationships,
            default_tier=snapshot.default_tier,
            exclude_weekends=args.exclude_weekends or None,
        )

    if args.json:
        print_json(plan.to_dict())
        return 0

    print_header(f"PLAN {plan.date.isoformat()} - {capacity_label(plan.capacity_tier)}")
    print(f"  Capacity: {plan.capacity_tier.value} ({capacity_description(plan.capacity_tier)}), source {plan.capacity_source.value}")
    if plan.is_recovery:
        print("  Recovery day: a lighter plan to get back on track.")
    if plan.override_reason:
        print(f"  Override reason: {plan.override_reason}")
    if plan.skipped_reason:
        print(f"  Skipped: {plan.skipped_reason}")
        return 0

    if not plan.all_actions:
        print("\n  Nothing to do today.")
        return 0

    if plan.fast_win:
        print(f"\n⚡ FAST WIN  {plan.fast_win.id}  {_action_label(plan.fast_win)}")

    print(f"\n🎯 ACTIONS ({len(plan.all_actions)}/{plan.max_actions})")
    for i, action in enumerate(plan.actions, 1):
        print(f"  {i}. {action.id}  [{action.action_type.value}] {_action_label(action)}")
    return 0


COMMANDS = {
    "priorities": cmd_priorities,
    "lanes": cmd_lanes,
    "stalls": cmd_stalls,
    "plan": cmd_plan,
}


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="nextmove", description="Prioritize actions and plan the day.")
    p.add_argument("--now", help="Evaluate at this ISO timestamp instead of the wall clock")
    p.add_argument("--log-level", default=config.LOG_LEVEL)
    p.add_argument("--json", action="store_true", help="Print JSON instead of tables")

    sub = p.add_subparsers(dest="command", required=True)
    for name in ("priorities", "lanes", "stalls"):
        cmd = sub.add_parser(name)
        cmd.add_argument("snapshot", type=Path)

    plan = sub.add_parser("plan")
    plan.add_argument("snapshot", type=Path)
    plan.add_argument("--user", default="me")
    plan.add_argument("--date", help="Plan date YYYY-MM-DD (default: today)")
    plan.add_argument("--free-minutes", type=int, default=None)
    plan.add_argument("--override", choices=[t.value for t in CapacityTier])
    plan.add_argument("--reason")
    plan.add_argument("--exclude-weekends", action="store_true")
    return p


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level, config.LOG_JSON)

    if args.now:
        now = parse_timestamp(args.now)
        if now is None:
            print(f"Invalid --now: {args.now}", file=sys.stderr)
            return 2
    else:
        now = datetime.now()

    try:
        snapshot = Snapshot.load(args.snapshot)
        return COMMANDS[args.command](snapshot, now, args)
    except (ValidationError, PolicyError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except (OSError, yaml.YAMLError) as e:
        logger.error(f"Could not read snapshot {args.snapshot}: {e}")
        print(f"Error: could not read {args.snapshot}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
