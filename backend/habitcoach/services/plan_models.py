"""Typed plan structures shared by the scheduling and reporting services."""
from __future__ import annotations

from datetime import date
from typing import Annotated, List, Literal, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

MilestoneStatus = Literal["pending", "in_progress", "completed", "error"]
_STATUS_VALUES = {"pending", "in_progress", "completed", "error"}


class DailyTodo(BaseModel):
    """Recurring task template; due every day its milestone is active."""

    model_config = ConfigDict(extra="ignore")

    description: str = Field(..., min_length=1)
    time: Optional[str] = Field(default=None, description="Preferred window such as 07:00-07:30.")
    repeat: Optional[int] = Field(default=None, ge=0)
    score: float = 0


class Milestone(BaseModel):
    """One contiguous phase of a plan."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    title: str
    duration: str = Field(..., description="Free-form duration such as '1주' or '10일'.")
    status: MilestoneStatus = "pending"
    tasks: List[DailyTodo] = Field(
        default_factory=list,
        validation_alias=AliasChoices("tasks", "daily_todos"),
    )

    @field_validator("status", mode="before")
    @classmethod
    def normalize_status(cls, value):
        normalized = str(value or "pending").strip().lower().replace("-", "_")
        return normalized if normalized in _STATUS_VALUES else "pending"


class PlanContext(BaseModel):
    """User inputs captured before asking the model for a plan."""

    habit: str = Field(..., min_length=1, max_length=200)
    available_time: str = ""
    difficulty: str = ""
    persona: str = "kind"
    period: str = "1개월"


class Plan(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: str
    title: str = Field(..., validation_alias=AliasChoices("plan_title", "title"))
    primary_goal: str
    persona: str
    period: str
    start_date: date
    milestones: List[Milestone] = Field(..., min_length=1)


class ParsedPlan(Plan):
    """Plan recovered from the model's response."""

    source: Literal["generated"] = "generated"


class FallbackPlan(Plan):
    """Deterministic plan synthesized from the user's inputs."""

    source: Literal["fallback"] = "fallback"
    fallback_reason: str = "unknown"


IngestedPlan = Annotated[Union[ParsedPlan, FallbackPlan], Field(discriminator="source")]
