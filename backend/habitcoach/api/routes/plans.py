"""Plan ingestion, schedule and daily task routes."""
from __future__ import annotations

from dataclasses import asdict
from datetime import date
from time import perf_counter
from typing import Any, Dict, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.orm import Session

from habitcoach.api.schemas.plan import (
    ActiveMilestonePayload,
    CoachStatusPayload,
    DayTasksResponse,
    MilestoneWindowPayload,
    PlanCreateRequest,
    PlanResponse,
    PlanScheduleResponse,
    TodoInstancePayload,
)
from habitcoach.core.clock import today
from habitcoach.core.context import bind_user
from habitcoach.db.deps import get_db
from habitcoach.db.models.plan import PlanRecord
from habitcoach.observability.metrics import log_metric
from habitcoach.observability.tracing import trace
from habitcoach.services.completion_tracker import DailyTodoInstance
from habitcoach.services.day_resolver import milestone_schedule, plan_total_days
from habitcoach.services.insights import CoachStatus, coach_status
from habitcoach.services.plan_generator import request_plan_text
from habitcoach.services.plan_ingest import ingest_plan
from habitcoach.services.plan_store import load_active_plan, save_active_plan, to_plan
from habitcoach.services.todo_service import tasks_for_day

router = APIRouter()


@router.post("/plans", response_model=PlanResponse, status_code=status.HTTP_201_CREATED, tags=["plans"])
def create_plan(
    payload: PlanCreateRequest,
    http_request: Request,
    db: Session = Depends(get_db),
) -> PlanResponse:
    """Ingest model output (or request it) and store the result as the active plan."""
    bind_user(payload.user_id)
    request_id = getattr(http_request.state, "request_id", None)
    start_day = payload.start_date or today()
    metadata: Dict[str, Any] = {
        "route": "/plans",
        "user_id": str(payload.user_id),
        "raw_text_supplied": payload.raw_text is not None,
        "request_id": request_id,
    }
    start = perf_counter()

    try:
        with trace("plan.create", metadata=metadata, user_id=str(payload.user_id), request_id=request_id):
            raw_text = payload.raw_text
            if raw_text is None:
                raw_text = request_plan_text(payload.context, today=start_day, request_id=request_id)
            plan = ingest_plan(raw_text, payload.context, today=start_day)
            record = save_active_plan(db, payload.user_id, plan)
            db.commit()
            db.refresh(record)
    except Exception:
        db.rollback()
        raise

    log_metric("plan.create.success", 1, metadata={"user_id": str(payload.user_id), "source": record.source})
    log_metric("plan.create.latency_ms", (perf_counter() - start) * 1000, metadata={"user_id": str(payload.user_id)})
    return _serialize_plan(record, request_id)


@router.get("/plans/active", response_model=PlanResponse, tags=["plans"])
def get_active_plan(
    http_request: Request,
    user_id: UUID = Query(..., description="User ID"),
    db: Session = Depends(get_db),
) -> PlanResponse:
    record = load_active_plan(db, user_id)
    if not record:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No active plan")
    return _serialize_plan(record, getattr(http_request.state, "request_id", None))


@router.get("/plans/{plan_id}/schedule", response_model=PlanScheduleResponse, tags=["plans"])
def get_plan_schedule(
    plan_id: UUID,
    http_request: Request,
    db: Session = Depends(get_db),
) -> PlanScheduleResponse:
    record = db.get(PlanRecord, plan_id)
    if not record:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Plan not found")
    plan = to_plan(record)
    return PlanScheduleResponse(
        plan_id=record.id,
        start_date=record.start_date,
        total_days=plan_total_days(plan),
        milestones=[MilestoneWindowPayload(**asdict(window)) for window in milestone_schedule(plan)],
        request_id=getattr(http_request.state, "request_id", None) or "",
    )


@router.get("/plans/{plan_id}/today", response_model=DayTasksResponse, tags=["plans"])
def get_day_tasks(
    plan_id: UUID,
    http_request: Request,
    user_id: UUID = Query(..., description="User ID owning the plan"),
    on: Optional[date] = Query(default=None, description="Target date; defaults to today"),
    db: Session = Depends(get_db),
) -> DayTasksResponse:
    """Return the active milestone and that date's task instances."""
    record = db.get(PlanRecord, plan_id)
    if not record:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Plan not found")
    if record.user_id != user_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Plan does not belong to user")

    request_id = getattr(http_request.state, "request_id", None)
    target = on or today()
    try:
        with trace(
            "plan.today",
            metadata={"plan_id": str(plan_id), "date": target.isoformat()},
            user_id=str(user_id),
            request_id=request_id,
        ):
            day = tasks_for_day(db, record, target)
            db.commit()
    except Exception:
        db.rollback()
        raise

    log_metric("plan.today.todo_count", len(day.instances), metadata={"plan_id": str(plan_id)})
    active = day.active
    return DayTasksResponse(
        plan_id=record.id,
        on_date=target,
        active_milestone=ActiveMilestonePayload(
            index=active.index,
            title=active.milestone.title,
            day_offset=active.day_offset,
            starts_on=active.starts_on,
            ends_on=active.ends_on,
        )
        if active
        else None,
        todos=[serialize_instance(item) for item in day.instances],
        achievement_score=day.score,
        coach_status=serialize_coach_status(coach_status(day.score)),
        request_id=request_id or "",
    )


def serialize_instance(item: DailyTodoInstance) -> TodoInstancePayload:
    return TodoInstancePayload(
        id=item.id,
        description=item.description,
        time_window=item.time_window,
        completed=item.completed,
        position=item.position,
    )


def serialize_coach_status(value: CoachStatus) -> CoachStatusPayload:
    return CoachStatusPayload(
        tier=value.tier,
        emoji=value.emoji,
        message=value.message,
        severity_color=value.severity_color,
    )


def _serialize_plan(record: PlanRecord, request_id: Optional[str]) -> PlanResponse:
    plan = to_plan(record)
    return PlanResponse(
        id=record.id,
        user_id=record.user_id,
        title=record.title,
        primary_goal=record.primary_goal,
        persona=record.persona,
        period=record.period,
        start_date=record.start_date,
        source=record.source,
        fallback_reason=record.fallback_reason,
        status=record.status,
        total_days=plan_total_days(plan),
        milestones=plan.milestones,
        request_id=request_id or "",
    )
