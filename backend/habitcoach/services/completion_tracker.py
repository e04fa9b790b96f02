"""Per-day task instances, completion toggling and achievement scoring."""
from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date
from typing import Dict, Iterable, List, Optional, Sequence

from habitcoach.services.plan_models import DailyTodo


class UnknownTaskInstanceError(KeyError):
    """The instance id is not part of the materialized set."""


@dataclass(frozen=True)
class DailyTodoInstance:
    id: str
    plan_id: str
    todo_date: date
    position: int
    description: str
    time_window: Optional[str] = None
    completed: bool = False


def instance_id(plan_id: str, on_date: date, index: int) -> str:
    return f"{plan_id}:{on_date.isoformat()}:{index}"


def materialize(tasks: Sequence[DailyTodo], on_date: date, plan_id: str) -> List[DailyTodoInstance]:
    """Create one incomplete instance per task template for ``on_date``."""
    return [
        DailyTodoInstance(
            id=instance_id(plan_id, on_date, index),
            plan_id=plan_id,
            todo_date=on_date,
            position=index,
            description=task.description,
            time_window=task.time,
        )
        for index, task in enumerate(tasks)
    ]


def toggle(instances: Sequence[DailyTodoInstance], target_id: str) -> List[DailyTodoInstance]:
    """Return a new list with exactly the instance ``target_id`` flipped."""
    if not any(item.id == target_id for item in instances):
        raise UnknownTaskInstanceError(target_id)
    return [replace(item, completed=not item.completed) if item.id == target_id else item for item in instances]


def achievement_score(instances: Iterable[DailyTodoInstance]) -> int:
    """Completion ratio on a 0-10 scale, rounded half up; 0 for an empty day."""
    items = list(instances)
    total = len(items)
    if total == 0:
        return 0
    completed = sum(1 for item in items if item.completed)
    # round(completed / total * 10) with halves going up, in integer arithmetic
    return (completed * 20 + total) // (2 * total)


def completion_ratio(instances: Iterable[DailyTodoInstance]) -> float:
    items = list(instances)
    if not items:
        return 0.0
    return sum(1 for item in items if item.completed) / len(items)


def task_snapshot(instances: Iterable[DailyTodoInstance]) -> List[Dict[str, object]]:
    """Description/completed pairs stored alongside a daily report."""
    return [{"description": item.description, "completed": item.completed} for item in instances]


class CompletionTracker:
    """In-memory instance map for one date; toggles are last-write-wins."""

    def __init__(self) -> None:
        self._instances: Dict[str, DailyTodoInstance] = {}

    def materialize(self, tasks: Sequence[DailyTodo], on_date: date, plan_id: str) -> List[DailyTodoInstance]:
        created = materialize(tasks, on_date, plan_id)
        for item in created:
            self._instances.setdefault(item.id, item)
        return [self._instances[item.id] for item in created]

    def toggle(self, target_id: str) -> DailyTodoInstance:
        current = self._instances.get(target_id)
        if current is None:
            raise UnknownTaskInstanceError(target_id)
        flipped = replace(current, completed=not current.completed)
        self._instances[target_id] = flipped
        return flipped

    def instances(self, on_date: Optional[date] = None) -> List[DailyTodoInstance]:
        items = sorted(self._instances.values(), key=lambda item: (item.todo_date, item.position))
        if on_date is None:
            return items
        return [item for item in items if item.todo_date == on_date]

    def score(self, on_date: date) -> int:
        return achievement_score(self.instances(on_date))
