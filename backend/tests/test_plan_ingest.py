"""Tests for turning raw model output into a plan."""
from __future__ import annotations

import json
from datetime import date

import pytest

from habitcoach.services.day_resolver import plan_total_days
from habitcoach.services.plan_ingest import PlanRejected, build_fallback_plan, extract_json_text, ingest_plan
from habitcoach.services.plan_models import FallbackPlan, ParsedPlan, PlanContext

TODAY = date(2025, 1, 1)
CONTEXT = PlanContext(habit="아침 독서", available_time="출근 전 20분", difficulty="늦잠")


def _payload(**overrides):
    payload = {
        "id": "plan-abc",
        "primary_goal": "한 달에 책 두 권 읽기",
        "plan_title": "아침 독서 플랜",
        "persona": "kind",
        "period": "1개월",
        "start_date": "2025-01-01",
        "milestones": [
            {
                "title": "적응기",
                "duration": "1주",
                "status": "in-progress",
                "tasks": [{"description": "10쪽 읽기", "time": "07:00-07:20"}],
            },
            {
                "title": "유지기",
                "duration": "3주",
                "daily_todos": [{"description": "20쪽 읽기"}, {"description": "한 줄 메모"}],
            },
        ],
    }
    payload.update(overrides)
    return payload


def _raw(payload) -> str:
    return json.dumps(payload, ensure_ascii=False)


def test_fenced_json_with_prose_is_accepted() -> None:
    raw = "물론이죠! 아래는 플랜입니다.\n```json\n" + _raw(_payload()) + "\n```\n좋은 하루 되세요."

    plan = ingest_plan(raw, CONTEXT, today=TODAY)

    assert isinstance(plan, ParsedPlan)
    assert plan.source == "generated"
    assert plan.id == "plan-abc"
    assert plan.title == "아침 독서 플랜"
    assert plan.start_date == date(2025, 1, 1)
    assert plan.milestones[0].status == "in_progress"
    assert [t.description for t in plan.milestones[1].tasks] == ["20쪽 읽기", "한 줄 메모"]
    assert plan_total_days(plan) == 28


def test_bare_object_surrounded_by_text() -> None:
    raw = "plan: " + _raw(_payload()) + " -- end"
    assert isinstance(ingest_plan(raw, CONTEXT, today=TODAY), ParsedPlan)


def test_missing_id_gets_generated() -> None:
    payload = _payload()
    payload.pop("id")
    plan = ingest_plan(_raw(payload), CONTEXT, today=TODAY)
    assert isinstance(plan, ParsedPlan)
    assert plan.id


def test_unknown_status_becomes_pending() -> None:
    payload = _payload()
    payload["milestones"][0]["status"] = "someday"
    plan = ingest_plan(_raw(payload), CONTEXT, today=TODAY)
    assert plan.milestones[0].status == "pending"


def test_provider_error_yields_fallback() -> None:
    plan = ingest_plan("401 API_KEY error", CONTEXT, today=TODAY)

    assert isinstance(plan, FallbackPlan)
    assert plan.source == "fallback"
    assert plan.fallback_reason.startswith("provider_error:")
    assert plan.primary_goal == "아침 독서"
    assert plan.start_date == TODAY
    assert len(plan.milestones) == 2
    assert [m.duration for m in plan.milestones] == ["1주", "3주"]
    assert plan_total_days(plan) == 28


@pytest.mark.parametrize(
    ("raw", "reason"),
    [
        ("", "empty_response"),
        ("   ", "empty_response"),
        ("no braces at all", "no_json_object"),
        ("{not json}", "invalid_json"),
    ],
)
def test_unusable_text_falls_back(raw: str, reason: str) -> None:
    plan = ingest_plan(raw, CONTEXT, today=TODAY)
    assert isinstance(plan, FallbackPlan)
    assert plan.fallback_reason == reason


def test_none_text_falls_back() -> None:
    assert ingest_plan(None, CONTEXT, today=TODAY).fallback_reason == "empty_response"


def test_missing_required_field_falls_back() -> None:
    payload = _payload()
    payload.pop("primary_goal")
    plan = ingest_plan(_raw(payload), CONTEXT, today=TODAY)
    assert isinstance(plan, FallbackPlan)
    assert plan.fallback_reason == "missing_fields:primary_goal"


def test_empty_milestones_fall_back() -> None:
    plan = ingest_plan(_raw(_payload(milestones=[])), CONTEXT, today=TODAY)
    assert isinstance(plan, FallbackPlan)


def test_unparsable_duration_falls_back() -> None:
    payload = _payload()
    payload["milestones"][1]["duration"] = "한동안"
    plan = ingest_plan(_raw(payload), CONTEXT, today=TODAY)
    assert isinstance(plan, FallbackPlan)
    assert plan.fallback_reason == "unparsable_duration:한동안"


def test_zero_length_plan_falls_back() -> None:
    payload = _payload()
    for milestone in payload["milestones"]:
        milestone["duration"] = "0일"
    plan = ingest_plan(_raw(payload), CONTEXT, today=TODAY)
    assert plan.fallback_reason == "zero_length_plan"


def test_bad_start_date_falls_back() -> None:
    plan = ingest_plan(_raw(_payload(start_date="next monday")), CONTEXT, today=TODAY)
    assert isinstance(plan, FallbackPlan)
    assert plan.fallback_reason.startswith("schema:")


def test_custom_markers_override_settings() -> None:
    raw = _raw(_payload())
    assert isinstance(ingest_plan(raw, CONTEXT, today=TODAY, markers=["아침"]), FallbackPlan)
    assert isinstance(ingest_plan(raw, CONTEXT, today=TODAY, markers=[]), ParsedPlan)


def test_extract_prefers_fenced_block() -> None:
    raw = 'intro {"ignored": true}\n```\n{"kept": 1}\n```'
    assert json.loads(extract_json_text(raw)) == {"kept": 1}


def test_extract_without_object_raises() -> None:
    with pytest.raises(PlanRejected):
        extract_json_text("nothing here")


def test_fallback_uses_context_fields() -> None:
    plan = build_fallback_plan(PlanContext(habit="  스트레칭 ", persona="strict"), today=TODAY)

    assert plan.title == "'스트레칭' 습관 만들기 플랜"
    assert plan.persona == "strict"
    assert plan.fallback_reason == "requested"
    first_tasks = [t.description for t in plan.milestones[0].tasks]
    assert first_tasks[0] == "하루 중 편한 시간에 스트레칭 5분 실천하기"
    assert first_tasks[1] == "오늘 실천한 내용 한 줄 기록하기"


def test_fallback_reflection_mentions_difficulty() -> None:
    plan = build_fallback_plan(CONTEXT, today=TODAY)
    assert "늦잠" in plan.milestones[0].tasks[1].description
    assert plan.milestones[0].tasks[0].description.startswith("출근 전 20분에")


def test_marker_digits_inside_plan_content_are_not_errors() -> None:
    payload = _payload(id="3f1c2a9e-4019-4c2b-9429-0a1b2c3d4e5f")
    payload["milestones"][0]["tasks"] = [{"description": "도서관 401호에서 30분 공부하기"}]
    payload["milestones"][1]["tasks"] = [{"description": "하루 429쪽 목표의 10% 읽기"}]

    plan = ingest_plan(_raw(payload), CONTEXT, today=TODAY)

    assert isinstance(plan, ParsedPlan)
    assert plan.source == "generated"
    assert plan.id == "3f1c2a9e-4019-4c2b-9429-0a1b2c3d4e5f"


@pytest.mark.parametrize(
    "raw",
    [
        "Error code: 401 - invalid credentials",
        "HTTP 429 Too Many Requests",
        "error: You exceeded your current quota",
        "Incorrect API key provided",
    ],
)
def test_standalone_markers_are_provider_errors(raw: str) -> None:
    plan = ingest_plan(raw, CONTEXT, today=TODAY)
    assert isinstance(plan, FallbackPlan)
    assert plan.fallback_reason.startswith("provider_error:")
