"""Daily and weekly report routes."""
from __future__ import annotations

from datetime import date
from time import perf_counter
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.orm import Session

from habitcoach.api.schemas.report import (
    DailyReportCreateRequest,
    DailyReportListResponse,
    DailyReportPayload,
    DailyReportResponse,
    WeeklyReportCreateRequest,
    WeeklyReportResponse,
)
from habitcoach.core.clock import today
from habitcoach.core.context import bind_user
from habitcoach.db.deps import get_db
from habitcoach.db.models.daily_report import DailyReportRecord
from habitcoach.db.models.weekly_report import WeeklyReportRecord
from habitcoach.observability.metrics import log_metric
from habitcoach.observability.tracing import trace
from habitcoach.services.plan_store import load_active_plan
from habitcoach.services.report_service import (
    create_weekly_report,
    latest_weekly_report,
    list_daily_reports,
    upsert_daily_report,
)

router = APIRouter()


@router.post("/reports/daily", response_model=DailyReportResponse, tags=["reports"])
def create_daily_report(
    payload: DailyReportCreateRequest,
    http_request: Request,
    db: Session = Depends(get_db),
) -> DailyReportResponse:
    """Score the day from the active plan's task instances and store it."""
    bind_user(payload.user_id)
    request_id = getattr(http_request.state, "request_id", None)
    report_date = payload.report_date or today()
    plan = load_active_plan(db, payload.user_id)
    if plan is None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="No active plan to report on")

    try:
        with trace(
            "report.daily",
            metadata={"date": report_date.isoformat(), "plan_id": str(plan.id)},
            user_id=str(payload.user_id),
            request_id=request_id,
        ):
            record = upsert_daily_report(
                db,
                user_id=payload.user_id,
                report_date=report_date,
                plan=plan,
                feedback=payload.feedback,
            )
            db.commit()
            db.refresh(record)
    except Exception:
        db.rollback()
        raise

    log_metric("report.daily.score", record.achievement_score, metadata={"user_id": str(payload.user_id)})
    return DailyReportResponse(**_daily_payload(record).model_dump(), request_id=request_id or "")


@router.get("/reports/daily", response_model=DailyReportListResponse, tags=["reports"])
def get_daily_reports(
    http_request: Request,
    user_id: UUID = Query(..., description="User ID"),
    from_: Optional[date] = Query(default=None, alias="from"),
    to: Optional[date] = Query(default=None),
    db: Session = Depends(get_db),
) -> DailyReportListResponse:
    records = list_daily_reports(db, user_id, from_, to)
    return DailyReportListResponse(
        user_id=user_id,
        reports=[_daily_payload(record) for record in records],
        request_id=getattr(http_request.state, "request_id", None) or "",
    )


@router.post("/reports/weekly", response_model=WeeklyReportResponse, tags=["reports"])
def create_weekly(
    payload: WeeklyReportCreateRequest,
    http_request: Request,
    db: Session = Depends(get_db),
) -> WeeklyReportResponse:
    """Aggregate the week's daily reports into a stored weekly report."""
    bind_user(payload.user_id)
    request_id = getattr(http_request.state, "request_id", None)
    any_day = payload.week_of or today()
    start = perf_counter()
    try:
        with trace(
            "report.weekly",
            metadata={"week_of": any_day.isoformat()},
            user_id=str(payload.user_id),
            request_id=request_id,
        ):
            record, report = create_weekly_report(
                db,
                user_id=payload.user_id,
                any_day=any_day,
                request_id=request_id,
            )
            db.commit()
            db.refresh(record)
    except Exception:
        db.rollback()
        raise

    log_metric("report.weekly.average", report.stats.average_score, metadata={"user_id": str(payload.user_id)})
    log_metric("report.weekly.days_completed", report.stats.days_completed, metadata={"user_id": str(payload.user_id)})
    log_metric("report.weekly.latency_ms", (perf_counter() - start) * 1000, metadata={"user_id": str(payload.user_id)})
    return _weekly_response(record, request_id)


@router.get("/reports/weekly/latest", response_model=WeeklyReportResponse, tags=["reports"])
def get_latest_weekly(
    http_request: Request,
    user_id: UUID = Query(..., description="User ID"),
    db: Session = Depends(get_db),
) -> WeeklyReportResponse:
    record = latest_weekly_report(db, user_id)
    if record is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No weekly report yet")
    return _weekly_response(record, getattr(http_request.state, "request_id", None))


def _daily_payload(record: DailyReportRecord) -> DailyReportPayload:
    return DailyReportPayload(
        id=record.id,
        report_date=record.report_date,
        achievement_score=record.achievement_score,
        coach_feedback=list(record.coach_feedback or []),
        daily_activities=list(record.daily_activities or []),
    )


def _weekly_response(record: WeeklyReportRecord, request_id: Optional[str]) -> WeeklyReportResponse:
    return WeeklyReportResponse(
        id=record.id,
        user_id=record.user_id,
        week_start=record.week_start,
        week_end=record.week_end,
        average_score=record.average_score,
        days_completed=record.days_completed,
        daily_scores=list(record.daily_scores or []),
        insight_bucket=record.insight_bucket,
        insights=record.insights,
        request_id=request_id or "",
    )
