"""Coach status tiers for a day and qualitative buckets for a week."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Dict, Iterable, List, Optional, Sequence

from habitcoach.core.config import CoachTierRow, settings
from habitcoach.services.weekly_aggregator import ScoredDay, WeeklyStats, aggregate


@dataclass(frozen=True)
class CoachTier:
    tier: str
    min_score: float
    emoji: str
    message: str
    color: str
    # strict tiers require score > min_score instead of >=
    strict: bool = False

    def matches(self, score: float) -> bool:
        return score > self.min_score if self.strict else score >= self.min_score


@dataclass(frozen=True)
class CoachStatus:
    tier: str
    emoji: str
    message: str
    severity_color: str


DEFAULT_COACH_TIERS: tuple[CoachTier, ...] = (
    CoachTier("best", 9, "🥳", "완벽한 하루!", "#4CAF50"),
    CoachTier("good", 7, "😊", "정말 잘하고 있어요!", "#8BC34A"),
    CoachTier("fair", 5, "😌", "꾸준히 실천 중이네요", "#FFC107"),
    CoachTier("low", 0, "😐", "조금만 더 힘내요!", "#FF9800", strict=True),
    CoachTier("start", 0, "🤔", "시작이 반이에요!", "#9E9E9E"),
)


def load_coach_tiers(rows: Optional[Iterable[CoachTierRow | Dict]] = None) -> tuple[CoachTier, ...]:
    """Build the tier table from config rows, or return the default table.

    Dict rows are validated as ``CoachTierRow``; a row without ``min_score``
    raises ``pydantic.ValidationError``.
    """
    rows = rows if rows is not None else settings.coach_tiers
    validated = [CoachTierRow.model_validate(row) for row in rows or ()]
    if not validated:
        return DEFAULT_COACH_TIERS
    tiers = tuple(
        CoachTier(
            tier=row.tier or f"tier_{index}",
            min_score=row.min_score,
            emoji=row.emoji,
            message=row.message,
            color=row.color,
            strict=row.strict,
        )
        for index, row in enumerate(validated)
    )
    return tuple(sorted(tiers, key=lambda t: (t.min_score, t.strict), reverse=True))


def coach_status(score: float, tiers: Optional[Sequence[CoachTier]] = None) -> CoachStatus:
    """Map a 0-10 daily score to the first tier it satisfies."""
    table = tiers if tiers else load_coach_tiers()
    for tier in table:
        if tier.matches(score):
            return CoachStatus(tier=tier.tier, emoji=tier.emoji, message=tier.message, severity_color=tier.color)
    last = table[-1]
    return CoachStatus(tier=last.tier, emoji=last.emoji, message=last.message, severity_color=last.color)


class WeeklyInsightBucket(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW_BUT_CONSISTENT = "low_but_consistent"
    LOW = "low"


WEEKLY_INSIGHT_TEMPLATES: Dict[WeeklyInsightBucket, List[str]] = {
    WeeklyInsightBucket.HIGH: [
        "이번 주는 목표를 훌륭하게 달성했어요.",
        "지금의 리듬을 그대로 유지해 보세요.",
        "다음 주에는 조금 더 도전적인 목표를 세워도 좋아요.",
    ],
    WeeklyInsightBucket.MEDIUM: [
        "이번 주도 꾸준히 실천했어요.",
        "점수가 낮았던 요일의 방해 요소를 하나만 찾아보세요.",
        "작은 개선이 다음 주의 큰 차이를 만들어요.",
    ],
    WeeklyInsightBucket.LOW_BUT_CONSISTENT: [
        "점수는 아쉽지만 여러 날 빠지지 않고 시작했어요.",
        "꾸준함은 이미 만들어지고 있어요.",
        "할 일의 양을 줄여 완료하는 경험을 늘려 보세요.",
    ],
    WeeklyInsightBucket.LOW: [
        "이번 주는 실천이 어려웠어요.",
        "가장 쉬운 할 일 하나부터 다시 시작해 보세요.",
        "실천할 시간을 하루 중 더 편한 때로 옮겨 보는 것도 좋아요.",
    ],
}


def weekly_insight_bucket(average: float, days_completed: int) -> WeeklyInsightBucket:
    if average >= 8:
        return WeeklyInsightBucket.HIGH
    if average >= 6:
        return WeeklyInsightBucket.MEDIUM
    if days_completed >= 4:
        return WeeklyInsightBucket.LOW_BUT_CONSISTENT
    return WeeklyInsightBucket.LOW


def weekly_insight_lines(bucket: WeeklyInsightBucket) -> List[str]:
    return list(WEEKLY_INSIGHT_TEMPLATES[bucket])


@dataclass(frozen=True)
class WeeklyReport:
    stats: WeeklyStats
    bucket: WeeklyInsightBucket
    insights: str
    insight_source: str = "template"
    lines: List[str] = field(default_factory=list)


def build_weekly_report(
    reports: Iterable[ScoredDay],
    week_start: date,
    *,
    insight_text: Optional[str] = None,
) -> WeeklyReport:
    """Aggregate a week and attach bucketed insight text.

    ``insight_text`` (e.g. from the optional model call) replaces the
    template lines when it is non-empty.
    """
    return weekly_report_from_stats(aggregate(reports, week_start), insight_text=insight_text)


def weekly_report_from_stats(stats: WeeklyStats, *, insight_text: Optional[str] = None) -> WeeklyReport:
    bucket = weekly_insight_bucket(stats.average_score, stats.days_completed)
    lines = weekly_insight_lines(bucket)
    if insight_text and insight_text.strip():
        return WeeklyReport(stats=stats, bucket=bucket, insights=insight_text.strip(), insight_source="llm", lines=lines)
    return WeeklyReport(stats=stats, bucket=bucket, insights="\n".join(lines), lines=lines)
