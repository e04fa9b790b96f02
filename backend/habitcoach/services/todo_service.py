"""Persisted per-date task instances built from the day resolver."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import List, Optional
from uuid import UUID

from sqlalchemy import asc
from sqlalchemy.orm import Session

from habitcoach.db.models.plan import PlanRecord
from habitcoach.db.models.todo_instance import TodoInstanceRecord
from habitcoach.services.completion_tracker import (
    DailyTodoInstance,
    UnknownTaskInstanceError,
    achievement_score,
    materialize,
)
from habitcoach.services.day_resolver import ActiveMilestone, resolve_active_milestone
from habitcoach.services.plan_store import to_plan


@dataclass
class DayTasks:
    on_date: date
    active: Optional[ActiveMilestone]
    instances: List[DailyTodoInstance]

    @property
    def score(self) -> int:
        return achievement_score(self.instances)


def _to_instance(record: TodoInstanceRecord) -> DailyTodoInstance:
    return DailyTodoInstance(
        id=record.id,
        plan_id=str(record.plan_id),
        todo_date=record.todo_date,
        position=record.position,
        description=record.description,
        time_window=record.time_window,
        completed=bool(record.completed),
    )


def _load_records(db: Session, plan_id: UUID, on_date: date) -> List[TodoInstanceRecord]:
    return (
        db.query(TodoInstanceRecord)
        .filter(TodoInstanceRecord.plan_id == plan_id, TodoInstanceRecord.todo_date == on_date)
        .order_by(asc(TodoInstanceRecord.position))
        .all()
    )


def tasks_for_day(db: Session, plan_record: PlanRecord, on_date: date) -> DayTasks:
    """Resolve the active milestone and return that date's instances, creating them once."""
    active = resolve_active_milestone(to_plan(plan_record), on_date)
    records = _load_records(db, plan_record.id, on_date)
    if not records and active and active.tasks:
        for item in materialize(active.tasks, on_date, str(plan_record.id)):
            db.add(
                TodoInstanceRecord(
                    id=item.id,
                    plan_id=plan_record.id,
                    user_id=plan_record.user_id,
                    todo_date=on_date,
                    position=item.position,
                    milestone_index=active.index,
                    description=item.description,
                    time_window=item.time_window,
                    completed=False,
                )
            )
        db.flush()
        records = _load_records(db, plan_record.id, on_date)
    return DayTasks(on_date=on_date, active=active, instances=[_to_instance(r) for r in records])


def toggle_instance(db: Session, instance_id: str, user_id: UUID) -> DayTasks:
    """Flip one persisted instance and return the refreshed day."""
    record = db.get(TodoInstanceRecord, instance_id)
    if record is None:
        raise UnknownTaskInstanceError(instance_id)
    if record.user_id != user_id:
        raise PermissionError("Task instance does not belong to user")

    record.completed = not record.completed
    record.completed_at = datetime.now(timezone.utc) if record.completed else None
    db.add(record)
    db.flush()

    siblings = _load_records(db, record.plan_id, record.todo_date)
    return DayTasks(on_date=record.todo_date, active=None, instances=[_to_instance(r) for r in siblings])
