"""Persist ingested plans and load them back as typed plan values."""
from __future__ import annotations

import logging
from typing import Optional
from uuid import UUID

from sqlalchemy import desc
from sqlalchemy.orm import Session

from habitcoach.db.models.plan import PlanRecord
from habitcoach.services.plan_models import FallbackPlan, Milestone, ParsedPlan
from habitcoach.services.user_service import get_or_create_user

logger = logging.getLogger(__name__)


def save_active_plan(db: Session, user_id: UUID, plan: ParsedPlan | FallbackPlan) -> PlanRecord:
    """Store ``plan`` as the user's active plan, superseding any previous one."""
    get_or_create_user(db, user_id)
    superseded = (
        db.query(PlanRecord)
        .filter(PlanRecord.user_id == user_id, PlanRecord.status == "active")
        .update({PlanRecord.status: "superseded"}, synchronize_session=False)
    )
    if superseded:
        logger.info("Superseded %s active plan(s) for user %s", superseded, user_id)

    record = PlanRecord(
        user_id=user_id,
        title=plan.title,
        primary_goal=plan.primary_goal,
        persona=plan.persona,
        period=plan.period,
        start_date=plan.start_date,
        source=plan.source,
        fallback_reason=getattr(plan, "fallback_reason", None),
        status="active",
        milestones=[milestone.model_dump(mode="json") for milestone in plan.milestones],
    )
    db.add(record)
    db.flush()
    return record


def load_active_plan(db: Session, user_id: UUID) -> Optional[PlanRecord]:
    return (
        db.query(PlanRecord)
        .filter(PlanRecord.user_id == user_id, PlanRecord.status == "active")
        .order_by(desc(PlanRecord.created_at))
        .first()
    )


def to_plan(record: PlanRecord) -> ParsedPlan | FallbackPlan:
    """Rebuild the typed plan from a stored row; the row id becomes the plan id."""
    fields = dict(
        id=str(record.id),
        title=record.title,
        primary_goal=record.primary_goal,
        persona=record.persona,
        period=record.period,
        start_date=record.start_date,
        milestones=[Milestone.model_validate(item) for item in record.milestones or []],
    )
    if record.source == "fallback":
        return FallbackPlan(**fields, fallback_reason=record.fallback_reason or "unknown")
    return ParsedPlan(**fields)
