"""
Planning API Router — stateless decision endpoints plus daily plan storage.

Endpoints:
- POST /api/actions/priority — priority + urgency for each action
- POST /api/promises/resolve — promise selection → timestamp and label
- POST /api/leads/stalled-conversations — channel-escalation nudges
- POST /api/decision-engine/actions-by-lane — lane buckets, ranked
- POST /api/decision-engine/best-action — single best next move
- POST /api/daily-plans/generate — build and store a daily plan
- GET /api/daily-plans/{user_id}/{date} — fetch a stored plan

Every body may carry `now` (ISO 8601). Without it the wall clock is read
here, once per request.
"""

import logging
from datetime import date, datetime
from typing import Any

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from nextmove.capacity_truth import capacity_description, capacity_label
from nextmove.daily_plan import build_daily_plan
from nextmove.dates import parse_local_date, parse_timestamp
from nextmove.errors import ValidationError
from nextmove.lane_assigner import action_for_duration, actions_by_lane, assign_lanes, select_best_action
from nextmove.models import Action, CapacityOverride, CapacityTier, CompletionDay, Relationship
from nextmove.observability import RequestContext, get_request_id
from nextmove.plan_store import InMemoryPlanStore
from nextmove.policy import default_policy
from nextmove.priority import classify_many
from nextmove.promise_tracker import format_promise, is_promise_overdue, resolve_promise
from nextmove.stall_detector import detect_stalls

logger = logging.getLogger(__name__)

router = APIRouter(tags=["planning"])

_plan_store: InMemoryPlanStore | None = None


def get_plan_store() -> InMemoryPlanStore:
    """Get or create the process-wide plan store."""
    global _plan_store
    if _plan_store is None:
        _plan_store = InMemoryPlanStore()
    return _plan_store


# Pydantic models for API
class ActionIn(BaseModel):
    """An action row as the store adapter sends it."""

    id: str
    action_type: str = Field(..., description="OUTREACH|FOLLOW_UP|NURTURE|CALL_PREP|POST_CALL|CONTENT|FAST_WIN")
    state: str = Field(..., description="NEW|SENT|REPLIED|SNOOZED|DONE|ARCHIVED")
    due_date: str = Field(..., description="YYYY-MM-DD")
    person_id: str | None = None
    snooze_until: str | None = None
    promised_due_at: str | None = None
    estimated_minutes: int | None = None
    auto_created: bool = False
    created_at: str | None = None
    completed_at: str | None = None
    description: str | None = None


class RelationshipIn(BaseModel):
    id: str
    name: str = ""
    preferred_channel: str | None = Field(default=None, description="linkedin|email|text|other")
    cadence_days: int | None = None
    cadence: str | None = Field(default=None, description="frequent|moderate|infrequent|ad_hoc")
    last_interaction_at: str | None = None


class SnapshotRequest(BaseModel):
    """Actions and relationships for one user at one instant."""

    actions: list[ActionIn] = Field(default_factory=list)
    relationships: list[RelationshipIn] = Field(default_factory=list)
    now: str | None = None


class BestActionRequest(SnapshotRequest):
    available_minutes: int | None = Field(
        default=None, ge=1, description="Only consider actions whose estimate fits this time box"
    )


class PromiseRequest(BaseModel):
    selection: str = Field(..., description="eod|end_of_week|custom")
    work_end_time: str | None = Field(default=None, description="HH:MM, default 17:00")
    custom_at: str | None = None
    now: str | None = None


class OverrideIn(BaseModel):
    tier: str = Field(..., description="micro|light|standard|heavy")
    reason: str | None = None


class CompletionDayIn(BaseModel):
    date: str
    planned: int = Field(default=0, ge=0)
    completed: int = Field(default=0, ge=0)
    capacity_source: str | None = None


class GeneratePlanRequest(SnapshotRequest):
    user_id: str
    date: str = Field(..., description="Plan date, YYYY-MM-DD")
    free_minutes: int | None = Field(default=None, ge=0, description="Calendar free minutes; omit if unknown")
    override: OverrideIn | None = None
    completion_history: list[CompletionDayIn] = Field(default_factory=list)
    default_tier: str | None = None
    exclude_weekends: bool | None = None


class PriorityResponse(BaseModel):
    count: int
    results: list[dict[str, Any]]


class StallResponse(BaseModel):
    count: int
    nudges: list[dict[str, Any]]


class BestActionResponse(BaseModel):
    action_id: str | None = None
    lane: str | None = None
    next_move_score: float | None = None
    reason: str | None = None


# Conversion helpers


def _now(raw: str | None) -> datetime:
    if raw is None:
        return datetime.now()
    parsed = parse_timestamp(raw)
    if parsed is None:
        raise ValidationError(f"Invalid timestamp for now: {raw!r}")
    return parsed


def _actions(items: list[ActionIn]) -> list[Action]:
    return [Action.from_dict(item.model_dump()) for item in items]


def _relationships(items: list[RelationshipIn]) -> dict[str, Relationship]:
    rels = [Relationship.from_dict(item.model_dump()) for item in items]
    return {r.id: r for r in rels}


def _plan_date(raw: str) -> date:
    parsed = parse_local_date(raw)
    if parsed is None:
        raise ValidationError(f"Invalid date: {raw!r}")
    return parsed


def _bad_request(e: ValueError) -> HTTPException:
    logger.warning(f"Invalid request: {e}")
    return HTTPException(status_code=400, detail=str(e))


# Endpoints


@router.post("/actions/priority", response_model=PriorityResponse)
async def action_priorities(request: SnapshotRequest):
    """Priority level, urgency label and message per action."""
    try:
        now = _now(request.now)
        actions = _actions(request.actions)
        results = classify_many(actions, now, _relationships(request.relationships))
        return {
            "count": len(results),
            "results": [{"action_id": action_id, **result.to_dict()} for action_id, result in results.items()],
        }
    except ValueError as e:
        raise _bad_request(e) from e


@router.post("/promises/resolve")
async def resolve_promise_endpoint(request: PromiseRequest):
    """Concrete promise timestamp for a selection, with its display label."""
    try:
        now = _now(request.now)
        work_end = request.work_end_time or default_policy().default_work_end_time
        promised = resolve_promise(request.selection, now, work_end, request.custom_at)
        return {
            "selection": request.selection,
            "promised_due_at": promised.isoformat(),
            "label": format_promise(promised, now),
            "overdue": is_promise_overdue(promised, now),
        }
    except ValueError as e:
        raise _bad_request(e) from e


@router.post("/leads/stalled-conversations", response_model=StallResponse)
async def stalled_conversations(request: SnapshotRequest):
    """Relationships whose conversation stalled, longest silence first."""
    try:
        now = _now(request.now)
        rels = list(_relationships(request.relationships).values())
        nudges = detect_stalls(rels, _actions(request.actions), now)
        return {"count": len(nudges), "nudges": [n.to_dict() for n in nudges]}
    except ValueError as e:
        raise _bad_request(e) from e


@router.post("/decision-engine/actions-by-lane")
async def lanes(request: SnapshotRequest):
    """Open actions bucketed into priority / in_motion / on_deck, ranked."""
    try:
        now = _now(request.now)
        assignments = assign_lanes(_actions(request.actions), now, _relationships(request.relationships))
        grouped = actions_by_lane(assignments)
        return {
            "lanes": {lane.value: [assignments[i].to_dict() for i in ids] for lane, ids in grouped.items()},
            "counts": {lane.value: len(ids) for lane, ids in grouped.items()},
            "best_action_id": select_best_action(assignments),
        }
    except ValueError as e:
        raise _bad_request(e) from e


@router.post("/decision-engine/best-action", response_model=BestActionResponse)
async def best_action(request: BestActionRequest):
    """The single next move, optionally limited to a time box."""
    try:
        now = _now(request.now)
        actions = _actions(request.actions)
        assignments = assign_lanes(actions, now, _relationships(request.relationships))

        if request.available_minutes is not None:
            fit = action_for_duration(actions, assignments, request.available_minutes)
            action_id = fit.id if fit else None
        else:
            action_id = select_best_action(assignments)

        if action_id is None:
            return {}
        chosen = assignments[action_id]
        return {
            "action_id": action_id,
            "lane": chosen.lane.value,
            "next_move_score": chosen.next_move_score,
            "reason": chosen.reason,
        }
    except ValueError as e:
        raise _bad_request(e) from e


@router.post("/daily-plans/generate")
async def generate_daily_plan(request: GeneratePlanRequest):
    """Build the plan for (user_id, date) and replace any stored one."""
    try:
        now = _now(request.now)
        plan_date = _plan_date(request.date)
        actions = _actions(request.actions)
        relationships = _relationships(request.relationships)
        override = CapacityOverride.from_dict(request.override.model_dump()) if request.override else None
        history = [CompletionDay.from_dict(d.model_dump()) for d in request.completion_history]
        default_tier = CapacityTier(request.default_tier) if request.default_tier else None
    except ValueError as e:
        raise _bad_request(e) from e

    with RequestContext(request_id=get_request_id(), user_id=request.user_id):
        stored = get_plan_store().regenerate(
            request.user_id,
            plan_date,
            lambda: build_daily_plan(
                request.user_id,
                plan_date,
                actions,
                free_minutes=request.free_minutes,
                manual_override=override,
                completion_history=history,
                now=now,
                relationships=relationships,
                default_tier=default_tier,
                exclude_weekends=request.exclude_weekends,
            ),
        )

    plan = stored.plan
    return {
        **stored.to_dict(),
        "capacity_label": capacity_label(plan.capacity_tier),
        "capacity_description": capacity_description(plan.capacity_tier),
        "is_adaptive_recovery": plan.is_recovery,
    }


@router.get("/daily-plans/{user_id}/{plan_date}")
async def get_daily_plan(user_id: str, plan_date: str):
    """Fetch the stored plan for a user and date."""
    try:
        day = _plan_date(plan_date)
    except ValueError as e:
        raise _bad_request(e) from e

    stored = get_plan_store().get(user_id, day)
    if stored is None:
        raise HTTPException(status_code=404, detail=f"No plan for {user_id} on {day.isoformat()}")
    return stored.to_dict()
