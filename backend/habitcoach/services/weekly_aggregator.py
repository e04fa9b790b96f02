"""Roll daily achievement scores up into Monday-first weekly statistics."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, List, Protocol, Tuple

logger = logging.getLogger(__name__)

DAYS_PER_WEEK = 7


class ScoredDay(Protocol):
    report_date: date
    achievement_score: int


@dataclass(frozen=True)
class DailyReport:
    report_date: date
    achievement_score: int
    feedback: List[str] = field(default_factory=list)
    tasks: List[dict] = field(default_factory=list)


@dataclass(frozen=True)
class WeeklyStats:
    week_start: date
    week_end: date
    daily_scores: List[int]
    average_score: float
    days_completed: int


def week_window(day: date) -> Tuple[date, date]:
    """Monday and Sunday of the week containing ``day``."""
    start = day - timedelta(days=day.weekday())
    return start, start + timedelta(days=6)


def weekday_slot(day: date) -> int:
    """Monday=0 ... Sunday=6."""
    return day.weekday()


def round_score(value: Decimal | float | int, places: str = "0.1") -> float:
    return float(Decimal(str(value)).quantize(Decimal(places), rounding=ROUND_HALF_UP))


def aggregate(reports: Iterable[ScoredDay], week_start: date) -> WeeklyStats:
    """
    Bucket reports into a 7-slot score vector and summarize it.

    The caller selects the reports for the week; absent days count as 0 and
    the average always divides by 7. Two reports on the same weekday keep the
    later one.
    """
    scores = [0] * DAYS_PER_WEEK
    seen: set[int] = set()
    for report in reports:
        slot = weekday_slot(report.report_date)
        if slot in seen:
            logger.warning("Two reports map to weekday slot %s; keeping the later one", slot)
        seen.add(slot)
        scores[slot] = int(report.achievement_score)

    average = round_score(Decimal(sum(scores)) / Decimal(DAYS_PER_WEEK))
    return WeeklyStats(
        week_start=week_start,
        week_end=week_start + timedelta(days=DAYS_PER_WEEK - 1),
        daily_scores=scores,
        average_score=average,
        days_completed=sum(1 for score in scores if score > 0),
    )
