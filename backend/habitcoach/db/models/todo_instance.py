"""Materialized daily todo ORM model."""
from __future__ import annotations

from sqlalchemy import Boolean, Column, Date, DateTime, ForeignKey, Index, Integer, String, Text, func, text as sa_text
from sqlalchemy.dialects.postgresql import UUID

from habitcoach.db.base import Base


class TodoInstanceRecord(Base):
    __tablename__ = "daily_todo_instances"
    __table_args__ = (
        Index("ix_daily_todo_instances_plan_date", "plan_id", "todo_date"),
        Index("ix_daily_todo_instances_user_id", "user_id"),
    )

    # "{plan_id}:{YYYY-MM-DD}:{position}"
    id = Column(String(length=128), primary_key=True)
    plan_id = Column(UUID(as_uuid=True), ForeignKey("plans.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    todo_date = Column(Date, nullable=False)
    position = Column(Integer, nullable=False)
    milestone_index = Column(Integer, nullable=False)
    description = Column(Text, nullable=False)
    time_window = Column(String(length=50), nullable=True)
    completed = Column(Boolean, nullable=False, server_default=sa_text("false"))
    completed_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
