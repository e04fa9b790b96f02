"""Daily and weekly report persistence around the aggregation engine."""
from __future__ import annotations

import logging
from datetime import date
from typing import List, Optional
from uuid import UUID

from sqlalchemy import asc, desc
from sqlalchemy.orm import Session

from habitcoach.db.models.daily_report import DailyReportRecord
from habitcoach.db.models.plan import PlanRecord
from habitcoach.db.models.weekly_report import WeeklyReportRecord
from habitcoach.services.completion_tracker import achievement_score, task_snapshot
from habitcoach.services.insights import (
    WeeklyReport,
    coach_status,
    weekly_insight_bucket,
    weekly_report_from_stats,
)
from habitcoach.services.plan_generator import request_weekly_insight
from habitcoach.services.todo_service import tasks_for_day
from habitcoach.services.user_service import get_or_create_user
from habitcoach.services.weekly_aggregator import aggregate, week_window

logger = logging.getLogger(__name__)


def upsert_daily_report(
    db: Session,
    *,
    user_id: UUID,
    report_date: date,
    plan: Optional[PlanRecord],
    feedback: List[str],
) -> DailyReportRecord:
    """Score ``report_date`` from its task instances and store it (one row per date)."""
    get_or_create_user(db, user_id)
    instances = tasks_for_day(db, plan, report_date).instances if plan else []
    score = achievement_score(instances)
    lines = [line.strip() for line in feedback if line and line.strip()]
    if not lines:
        lines = [coach_status(score).message]

    record = (
        db.query(DailyReportRecord)
        .filter(DailyReportRecord.user_id == user_id, DailyReportRecord.report_date == report_date)
        .one_or_none()
    )
    if record is None:
        record = DailyReportRecord(user_id=user_id, report_date=report_date)
    record.plan_id = plan.id if plan else None
    record.achievement_score = score
    record.coach_feedback = lines
    record.daily_activities = task_snapshot(instances)
    db.add(record)
    db.flush()
    return record


def list_daily_reports(
    db: Session,
    user_id: UUID,
    start: Optional[date] = None,
    end: Optional[date] = None,
) -> List[DailyReportRecord]:
    query = db.query(DailyReportRecord).filter(DailyReportRecord.user_id == user_id)
    if start:
        query = query.filter(DailyReportRecord.report_date >= start)
    if end:
        query = query.filter(DailyReportRecord.report_date <= end)
    return query.order_by(asc(DailyReportRecord.report_date)).all()


def create_weekly_report(
    db: Session,
    *,
    user_id: UUID,
    any_day: date,
    request_id: Optional[str] = None,
) -> tuple[WeeklyReportRecord, WeeklyReport]:
    """Aggregate the Monday-Sunday window containing ``any_day`` and store the result."""
    get_or_create_user(db, user_id)
    week_start, week_end = week_window(any_day)
    dailies = list_daily_reports(db, user_id, week_start, week_end)
    stats = aggregate(dailies, week_start)
    bucket = weekly_insight_bucket(stats.average_score, stats.days_completed)
    insight_text = request_weekly_insight(stats, bucket, request_id=request_id)
    report = weekly_report_from_stats(stats, insight_text=insight_text)

    record = (
        db.query(WeeklyReportRecord)
        .filter(WeeklyReportRecord.user_id == user_id, WeeklyReportRecord.week_start == week_start)
        .one_or_none()
    )
    if record is None:
        record = WeeklyReportRecord(user_id=user_id, week_start=week_start)
    record.week_end = stats.week_end
    record.average_score = stats.average_score
    record.days_completed = stats.days_completed
    record.daily_scores = list(stats.daily_scores)
    record.insight_bucket = report.bucket.value
    record.insights = report.insights
    db.add(record)
    db.flush()
    logger.info(
        "Weekly report for %s (%s): avg=%s days=%s bucket=%s",
        user_id,
        week_start,
        stats.average_score,
        stats.days_completed,
        report.bucket.value,
    )
    return record, report


def latest_weekly_report(db: Session, user_id: UUID) -> Optional[WeeklyReportRecord]:
    return (
        db.query(WeeklyReportRecord)
        .filter(WeeklyReportRecord.user_id == user_id)
        .order_by(desc(WeeklyReportRecord.week_start))
        .first()
    )
