"""Validate model-generated plan text, falling back to a deterministic plan."""
from __future__ import annotations

import json
import logging
import re
from datetime import date
from typing import Any, Dict, Iterable, Optional, Tuple
from uuid import uuid4

from pydantic import ValidationError

from habitcoach.core.clock import today as current_date
from habitcoach.core.config import settings
from habitcoach.observability.metrics import log_metric
from habitcoach.observability.tracing import trace
from habitcoach.services.duration_parser import is_recognized_duration, parse_duration_days
from habitcoach.services.plan_models import (
    DailyTodo,
    FallbackPlan,
    Milestone,
    ParsedPlan,
    Plan,
    PlanContext,
)

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("primary_goal", "plan_title", "persona", "period", "start_date", "milestones")

_FENCED_BLOCK = re.compile(r"```(?:json|javascript|text)?\s*([\s\S]*?)\s*```")


class PlanRejected(ValueError):
    """Raised internally when raw text cannot become a valid plan."""

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


def ingest_plan(
    raw_text: str | None,
    context: PlanContext,
    *,
    today: Optional[date] = None,
    markers: Optional[Iterable[str]] = None,
) -> ParsedPlan | FallbackPlan:
    """
    Turn raw model output into a plan. Never raises.

    Any provider error, malformed JSON, missing field or broken invariant
    yields a ``FallbackPlan`` built from ``context`` instead.
    """
    metadata = {"habit_length": len(context.habit), "raw_length": len(raw_text or "")}
    with trace("plan.ingest", metadata=metadata):
        try:
            plan = _parse_plan(raw_text or "", markers if markers is not None else settings.provider_error_markers)
        except PlanRejected as exc:
            return _fallback(context, exc.reason, today)
        except Exception as exc:  # pragma: no cover - unexpected shape
            logger.exception("Unexpected error while ingesting plan")
            return _fallback(context, f"unexpected:{type(exc).__name__}", today)

    logger.info("Plan ingested: %s", plan_summary(plan))
    log_metric("plan.ingest.source", 1, {"source": "generated", "milestones": len(plan.milestones)})
    return plan


def extract_json_text(raw_text: str) -> str:
    """Return the ``{...}`` slice of ``raw_text``, preferring a fenced block."""
    candidate = raw_text
    fenced = _FENCED_BLOCK.search(raw_text)
    if fenced and fenced.group(1):
        candidate = fenced.group(1)
    start = candidate.find("{")
    end = candidate.rfind("}")
    if start == -1 or end <= start:
        raise PlanRejected("no_json_object")
    return candidate[start : end + 1]


def _parse_plan(raw_text: str, markers: Iterable[str]) -> ParsedPlan:
    if not raw_text.strip():
        raise PlanRejected("empty_response")
    for marker in markers:
        if marker and _contains_marker(raw_text, marker):
            raise PlanRejected(f"provider_error:{marker}")

    try:
        payload = json.loads(extract_json_text(raw_text))
    except json.JSONDecodeError as exc:
        raise PlanRejected("invalid_json") from exc
    if not isinstance(payload, dict):
        raise PlanRejected("not_an_object")

    missing = [name for name in REQUIRED_FIELDS if payload.get(name) in (None, "", [])]
    if missing:
        raise PlanRejected(f"missing_fields:{','.join(missing)}")

    payload = dict(payload)
    payload["id"] = str(payload.get("id") or uuid4())
    try:
        plan = ParsedPlan.model_validate(payload)
    except ValidationError as exc:
        raise PlanRejected(f"schema:{exc.error_count()}_errors") from exc

    _check_invariants(plan)
    return plan


def _contains_marker(raw_text: str, marker: str) -> bool:
    """True when ``marker`` appears as a standalone token, not inside ids, numbers or words."""
    return re.search(rf"(?<![\w-]){re.escape(marker)}(?![\w-])", raw_text) is not None


def _check_invariants(plan: Plan) -> None:
    if not plan.milestones:
        raise PlanRejected("no_milestones")
    unparsable = [m.duration for m in plan.milestones if not is_recognized_duration(m.duration)]
    if unparsable:
        raise PlanRejected(f"unparsable_duration:{unparsable[0]}")
    if sum(parse_duration_days(m.duration) for m in plan.milestones) <= 0:
        raise PlanRejected("zero_length_plan")


def _fallback(context: PlanContext, reason: str, today: Optional[date]) -> FallbackPlan:
    logger.warning("Using fallback plan for habit %r (reason=%s)", context.habit, reason)
    log_metric("plan.fallback.used", 1, {"reason": reason.split(":", 1)[0]})
    log_metric("plan.ingest.source", 1, {"source": "fallback", "milestones": 2})
    return build_fallback_plan(context, reason=reason, today=today)


def build_fallback_plan(
    context: PlanContext,
    *,
    reason: str = "requested",
    today: Optional[date] = None,
) -> FallbackPlan:
    """Return the fixed two-milestone starter plan (1 week + 3 weeks)."""
    habit = context.habit.strip()
    when = context.available_time.strip() or "하루 중 편한 시간"
    starter_tasks, sustain_tasks = _fallback_task_templates(habit, when, context.difficulty.strip())
    return FallbackPlan(
        id=str(uuid4()),
        title=f"'{habit}' 습관 만들기 플랜",
        primary_goal=habit,
        persona=context.persona,
        period=context.period,
        start_date=today or current_date(),
        milestones=[
            Milestone(title="1주차: 습관 시작하기", duration="1주", status="in_progress", tasks=starter_tasks),
            Milestone(title="2~4주차: 습관 유지하기", duration="3주", status="pending", tasks=sustain_tasks),
        ],
        fallback_reason=reason,
    )


def _fallback_task_templates(habit: str, when: str, difficulty: str) -> Tuple[list[DailyTodo], list[DailyTodo]]:
    reflection = (
        f"'{difficulty}'을(를) 줄일 방법 한 가지 적어보기" if difficulty else "오늘 실천한 내용 한 줄 기록하기"
    )
    starter = [
        DailyTodo(description=f"{when}에 {habit} 5분 실천하기"),
        DailyTodo(description=reflection),
    ]
    sustain = [DailyTodo(description=f"{when}에 {habit} 실천하기")]
    return starter, sustain


def plan_summary(plan: Plan) -> Dict[str, Any]:
    """Compact description used for trace metadata and logs."""
    return {
        "plan_id": plan.id,
        "source": getattr(plan, "source", "generated"),
        "milestones": len(plan.milestones),
        "total_days": sum(parse_duration_days(m.duration) for m in plan.milestones),
        "start_date": plan.start_date.isoformat(),
    }
