"""Single-shot LLM calls that produce raw plan text and weekly insight text."""
from __future__ import annotations

import json
import logging
from datetime import date
from time import perf_counter
from typing import Any, Optional

import openai

from habitcoach.core.clock import today as current_date
from habitcoach.core.config import settings
from habitcoach.observability.metrics import log_metric
from habitcoach.observability.tracing import trace
from habitcoach.services.insights import WeeklyInsightBucket
from habitcoach.services.plan_ingest import ingest_plan
from habitcoach.services.plan_models import FallbackPlan, ParsedPlan, PlanContext
from habitcoach.services.weekly_aggregator import WeeklyStats

logger = logging.getLogger(__name__)

PERSONA_STYLES = {
    "kind": "따뜻하고 다정하게 격려하는 코치",
    "strict": "단호하고 명확하게 기준을 제시하는 코치",
    "friend": "편한 친구처럼 가볍게 응원하는 코치",
}

PLAN_SHAPE_EXAMPLE = {
    "id": "plan-id",
    "primary_goal": "최종 목표 한 문장",
    "plan_title": "플랜 제목",
    "persona": "kind",
    "period": "1개월",
    "start_date": "YYYY-MM-DD",
    "milestones": [
        {
            "title": "1주차: 단계 이름",
            "duration": "1주",
            "status": "pending",
            "tasks": [
                {"description": "실행 여부를 판단할 수 있는 할 일", "time": "HH:MM-HH:MM", "repeat": 7, "score": 0}
            ],
        }
    ],
}


def _client(client: Any = None) -> Any:
    if client is not None:
        return client
    api_key = settings.openai_api_key
    return openai.OpenAI(api_key=api_key) if api_key else None


def build_plan_prompt(context: PlanContext, start: date) -> str:
    style = PERSONA_STYLES.get(context.persona, context.persona)
    return (
        f"너는 {style}야.\n"
        f"나는 '{context.habit}'이라는 습관을 만들고 싶어. "
        f"하루 중 '{context.available_time or '편한 시간'}'에 이 습관을 할 수 있어. "
        f"습관을 만들 때 '{context.difficulty or '특별히 없음'}' 같은 어려움이 있어.\n"
        f"전체 기간은 {context.period}이고 시작일은 {start.isoformat()}이야.\n"
        "전체 기간을 순차적인 마일스톤으로 나누고, 각 마일스톤의 duration은 'N개월', 'N주', 'N일' 중 하나로 써줘. "
        "각 마일스톤에는 매일 반복할 할 일 목록을 넣고, description은 실행 여부를 명확하게 판단할 수 있게 작성해줘.\n"
        "설명 없이 아래 형식의 JSON 객체 하나만 반환해. 예시를 그대로 복사하지 마.\n"
        f"{json.dumps(PLAN_SHAPE_EXAMPLE, ensure_ascii=False, indent=2)}"
    )


def request_plan_text(
    context: PlanContext,
    *,
    client: Any = None,
    today: Optional[date] = None,
    request_id: Optional[str] = None,
) -> str:
    """
    Ask the model for a plan once and return its raw text.

    No retries. A missing key yields an empty string and provider failures
    yield an error string, both of which ``ingest_plan`` turns into a
    fallback plan.
    """
    llm = _client(client)
    if llm is None:
        logger.warning("OPENAI_API_KEY missing; plan generation skipped.")
        return ""

    prompt = build_plan_prompt(context, today or current_date())
    start = perf_counter()
    try:
        with trace("plan.generate", metadata={"model": settings.openai_model}, request_id=request_id):
            completion = llm.chat.completions.create(
                model=settings.openai_model,
                temperature=settings.llm_temperature,
                messages=[{"role": "user", "content": prompt}],
            )
            return completion.choices[0].message.content or ""
    except openai.OpenAIError as exc:
        logger.warning("Plan generation failed: %s", exc)
        return f"error: {exc}"
    except Exception as exc:
        logger.warning("Plan generation returned an unusable response: %s", exc, exc_info=True)
        return f"error: {type(exc).__name__}"
    finally:
        log_metric("plan.generate.latency_ms", (perf_counter() - start) * 1000)


def generate_plan(
    context: PlanContext,
    *,
    client: Any = None,
    today: Optional[date] = None,
    request_id: Optional[str] = None,
) -> ParsedPlan | FallbackPlan:
    raw_text = request_plan_text(context, client=client, today=today, request_id=request_id)
    return ingest_plan(raw_text, context, today=today)


def request_weekly_insight(
    stats: WeeklyStats,
    bucket: WeeklyInsightBucket,
    *,
    client: Any = None,
    request_id: Optional[str] = None,
) -> Optional[str]:
    """Optional model-written weekly insight; None when disabled or on failure."""
    if not settings.weekly_insights_llm_enabled and client is None:
        return None
    llm = _client(client)
    if llm is None:
        return None

    prompt = (
        "다음 주간 습관 기록을 보고 2~3문장의 짧은 코칭 피드백을 한국어로 써줘.\n"
        f"요일별 점수(월~일): {stats.daily_scores}\n"
        f"평균 점수: {stats.average_score}, 실천한 날: {stats.days_completed}일, 평가: {bucket.value}"
    )
    try:
        with trace("weekly_insight.generate", metadata={"bucket": bucket.value}, request_id=request_id):
            completion = llm.chat.completions.create(
                model=settings.openai_model,
                temperature=settings.llm_temperature,
                messages=[{"role": "user", "content": prompt}],
            )
            return completion.choices[0].message.content or None
    except Exception as exc:
        logger.warning("Weekly insight generation failed: %s", exc)
        return None
