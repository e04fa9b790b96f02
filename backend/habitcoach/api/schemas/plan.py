"""Schemas for plan ingestion and daily task endpoints."""
from __future__ import annotations

from datetime import date
from typing import List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from habitcoach.services.plan_models import Milestone, PlanContext


class PlanCreateRequest(BaseModel):
    user_id: UUID
    context: PlanContext
    raw_text: Optional[str] = Field(
        default=None,
        description="Model output to ingest; when omitted the server requests a plan itself.",
    )
    start_date: Optional[date] = None


class PlanResponse(BaseModel):
    id: UUID
    user_id: UUID
    title: str
    primary_goal: str
    persona: str
    period: str
    start_date: date
    source: Literal["generated", "fallback"]
    fallback_reason: Optional[str]
    status: str
    total_days: int
    milestones: List[Milestone]
    request_id: str


class MilestoneWindowPayload(BaseModel):
    index: int
    title: str
    duration: str
    days: int
    starts_on: date
    ends_on: Optional[date]


class PlanScheduleResponse(BaseModel):
    plan_id: UUID
    start_date: date
    total_days: int
    milestones: List[MilestoneWindowPayload]
    request_id: str


class CoachStatusPayload(BaseModel):
    tier: str
    emoji: str
    message: str
    severity_color: str


class TodoInstancePayload(BaseModel):
    id: str
    description: str
    time_window: Optional[str]
    completed: bool
    position: int


class ActiveMilestonePayload(BaseModel):
    index: int
    title: str
    day_offset: int
    starts_on: date
    ends_on: date


class DayTasksResponse(BaseModel):
    plan_id: UUID
    on_date: date
    active_milestone: Optional[ActiveMilestonePayload]
    todos: List[TodoInstancePayload]
    achievement_score: int
    coach_status: CoachStatusPayload
    request_id: str


class TodoToggleRequest(BaseModel):
    user_id: UUID


class TodoToggleResponse(BaseModel):
    todo: TodoInstancePayload
    on_date: date
    achievement_score: int
    coach_status: CoachStatusPayload
    request_id: str
