"""Schemas for daily and weekly report endpoints."""
from __future__ import annotations

from datetime import date
from typing import List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class DailyReportCreateRequest(BaseModel):
    user_id: UUID
    report_date: Optional[date] = None
    feedback: List[str] = Field(default_factory=list, max_length=10)


class TaskSnapshotPayload(BaseModel):
    description: str
    completed: bool


class DailyReportPayload(BaseModel):
    id: UUID
    report_date: date
    achievement_score: int = Field(..., ge=0, le=10)
    coach_feedback: List[str]
    daily_activities: List[TaskSnapshotPayload]


class DailyReportResponse(DailyReportPayload):
    request_id: str


class DailyReportListResponse(BaseModel):
    user_id: UUID
    reports: List[DailyReportPayload]
    request_id: str


class WeeklyReportCreateRequest(BaseModel):
    user_id: UUID
    week_of: Optional[date] = Field(default=None, description="Any date inside the target week.")


class WeeklyReportResponse(BaseModel):
    id: UUID
    user_id: UUID
    week_start: date
    week_end: date
    average_score: float
    days_completed: int
    daily_scores: List[int] = Field(..., min_length=7, max_length=7)
    insight_bucket: Literal["high", "medium", "low_but_consistent", "low"]
    insights: str
    request_id: str
