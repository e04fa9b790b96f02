"""Tests for the single-shot model calls, using a fake OpenAI client."""
from __future__ import annotations

import json
from datetime import date
from types import SimpleNamespace

import openai

from habitcoach.services import plan_generator
from habitcoach.services.insights import WeeklyInsightBucket
from habitcoach.services.plan_models import FallbackPlan, ParsedPlan, PlanContext
from habitcoach.services.weekly_aggregator import aggregate

CONTEXT = PlanContext(habit="일기 쓰기", available_time="자기 전", difficulty="피곤함", persona="strict")


class _FakeCompletions:
    def __init__(self, content: str | None = None, error: Exception | None = None):
        self.content = content
        self.error = error
        self.calls: list[dict] = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error:
            raise self.error
        message = SimpleNamespace(content=self.content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


class _FakeClient:
    def __init__(self, content: str | None = None, error: Exception | None = None):
        self.chat = SimpleNamespace(completions=_FakeCompletions(content, error))


class _EmptyChoicesClient:
    """Client whose completion comes back with no choices at all."""

    def __init__(self):
        create = lambda **kwargs: SimpleNamespace(choices=[])  # noqa: E731
        self.chat = SimpleNamespace(completions=SimpleNamespace(create=create))


def _plan_text() -> str:
    return json.dumps(
        {
            "primary_goal": "매일 일기 쓰기",
            "plan_title": "일기 플랜",
            "persona": "strict",
            "period": "2주",
            "start_date": "2025-05-05",
            "milestones": [{"title": "시작", "duration": "2주", "tasks": [{"description": "세 줄 쓰기"}]}],
        },
        ensure_ascii=False,
    )


def test_prompt_mentions_context() -> None:
    prompt = plan_generator.build_plan_prompt(CONTEXT, date(2025, 5, 5))

    assert "일기 쓰기" in prompt
    assert "자기 전" in prompt
    assert "피곤함" in prompt
    assert "2025-05-05" in prompt
    assert plan_generator.PERSONA_STYLES["strict"] in prompt


def test_request_plan_text_single_call() -> None:
    client = _FakeClient(content=_plan_text())

    text = plan_generator.request_plan_text(CONTEXT, client=client, today=date(2025, 5, 5))

    assert text == _plan_text()
    assert len(client.chat.completions.calls) == 1
    assert client.chat.completions.calls[0]["messages"][0]["role"] == "user"


def test_generate_plan_parses_response() -> None:
    plan = plan_generator.generate_plan(CONTEXT, client=_FakeClient(content=_plan_text()), today=date(2025, 5, 5))

    assert isinstance(plan, ParsedPlan)
    assert plan.title == "일기 플랜"


def test_provider_failure_becomes_fallback() -> None:
    client = _FakeClient(error=openai.OpenAIError("boom"))

    text = plan_generator.request_plan_text(CONTEXT, client=client)
    plan = plan_generator.generate_plan(CONTEXT, client=client, today=date(2025, 5, 5))

    assert text.startswith("error:")
    assert isinstance(plan, FallbackPlan)
    assert plan.start_date == date(2025, 5, 5)
    assert len(client.chat.completions.calls) == 2


def test_missing_key_skips_call(monkeypatch) -> None:
    monkeypatch.setattr(plan_generator.settings, "openai_api_key", None)

    assert plan_generator.request_plan_text(CONTEXT) == ""
    plan = plan_generator.generate_plan(CONTEXT, today=date(2025, 5, 5))
    assert isinstance(plan, FallbackPlan)
    assert plan.fallback_reason == "empty_response"


def test_weekly_insight_disabled_by_default(monkeypatch) -> None:
    monkeypatch.setattr(plan_generator.settings, "weekly_insights_llm_enabled", False)
    stats = aggregate([], date(2025, 5, 5))

    assert plan_generator.request_weekly_insight(stats, WeeklyInsightBucket.LOW) is None


def test_weekly_insight_with_client() -> None:
    stats = aggregate([], date(2025, 5, 5))

    text = plan_generator.request_weekly_insight(
        stats, WeeklyInsightBucket.LOW, client=_FakeClient(content="다음 주엔 하루만 더 해봐요.")
    )
    failed = plan_generator.request_weekly_insight(
        stats, WeeklyInsightBucket.LOW, client=_FakeClient(error=openai.OpenAIError("down"))
    )

    assert text == "다음 주엔 하루만 더 해봐요."
    assert failed is None


def test_empty_choices_becomes_fallback() -> None:
    text = plan_generator.request_plan_text(CONTEXT, client=_EmptyChoicesClient())
    plan = plan_generator.generate_plan(CONTEXT, client=_EmptyChoicesClient(), today=date(2025, 5, 5))

    assert text.startswith("error:")
    assert isinstance(plan, FallbackPlan)
    assert plan.primary_goal == "일기 쓰기"


def test_unexpected_client_error_becomes_fallback() -> None:
    plan = plan_generator.generate_plan(CONTEXT, client=_FakeClient(error=RuntimeError("socket closed")))
    assert isinstance(plan, FallbackPlan)


def test_weekly_insight_empty_choices_is_none() -> None:
    stats = aggregate([], date(2025, 5, 5))
    assert plan_generator.request_weekly_insight(stats, WeeklyInsightBucket.LOW, client=_EmptyChoicesClient()) is None
