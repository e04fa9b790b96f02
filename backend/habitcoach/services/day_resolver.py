"""Resolve which milestone (and task list) is active on a calendar date."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import List, Optional

from habitcoach.services.duration_parser import parse_duration_days
from habitcoach.services.plan_models import DailyTodo, Milestone, Plan

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ActiveMilestone:
    milestone: Milestone
    index: int
    day_offset: int
    starts_on: date
    ends_on: date

    @property
    def tasks(self) -> List[DailyTodo]:
        return list(self.milestone.tasks)


@dataclass(frozen=True)
class MilestoneWindow:
    index: int
    title: str
    duration: str
    days: int
    starts_on: date
    ends_on: Optional[date]


def _as_date(value: date | datetime) -> date:
    return value.date() if isinstance(value, datetime) else value


def resolve_active_milestone(plan: Plan | None, target_date: date | datetime) -> Optional[ActiveMilestone]:
    """
    Return the milestone covering ``target_date`` or None.

    Milestones are laid end to end from ``plan.start_date``. Zero-length
    milestones never match and add nothing to the running offset. Dates
    before the start or past the last milestone resolve to None.
    """
    if plan is None or not plan.milestones or plan.start_date is None:
        return None

    start = _as_date(plan.start_date)
    diff_days = (_as_date(target_date) - start).days
    if diff_days < 0:
        return None

    counter = 0
    for index, milestone in enumerate(plan.milestones):
        days = parse_duration_days(milestone.duration)
        if days <= 0:
            continue
        if counter <= diff_days < counter + days:
            return ActiveMilestone(
                milestone=milestone,
                index=index,
                day_offset=diff_days - counter,
                starts_on=start + timedelta(days=counter),
                ends_on=start + timedelta(days=counter + days - 1),
            )
        counter += days

    return None


def tasks_for_date(plan: Plan | None, target_date: date | datetime) -> List[DailyTodo]:
    active = resolve_active_milestone(plan, target_date)
    return active.tasks if active else []


def plan_total_days(plan: Plan) -> int:
    return sum(max(0, parse_duration_days(m.duration)) for m in plan.milestones)


def milestone_schedule(plan: Plan) -> List[MilestoneWindow]:
    """Dated windows for every milestone, including zero-length ones (``ends_on`` is None)."""
    windows: List[MilestoneWindow] = []
    if not plan.milestones:
        return windows
    start = _as_date(plan.start_date)
    counter = 0
    for index, milestone in enumerate(plan.milestones):
        days = parse_duration_days(milestone.duration)
        starts_on = start + timedelta(days=counter)
        windows.append(
            MilestoneWindow(
                index=index,
                title=milestone.title,
                duration=milestone.duration,
                days=days,
                starts_on=starts_on,
                ends_on=starts_on + timedelta(days=days - 1) if days > 0 else None,
            )
        )
        counter += days
    return windows
