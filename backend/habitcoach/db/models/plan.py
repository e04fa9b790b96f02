"""Plan ORM model."""
from __future__ import annotations

from uuid import uuid4

from sqlalchemy import Column, Date, DateTime, ForeignKey, Index, String, Text, func, text as sa_text
from sqlalchemy.dialects.postgresql import UUID

from habitcoach.db.base import Base
from habitcoach.db.types import JSONDocument


class PlanRecord(Base):
    __tablename__ = "plans"
    __table_args__ = (
        Index("ix_plans_user_id", "user_id"),
        Index("ix_plans_status", "status"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    title = Column(Text, nullable=False)
    primary_goal = Column(Text, nullable=False)
    persona = Column(String(length=50), nullable=False)
    period = Column(String(length=50), nullable=False)
    start_date = Column(Date, nullable=False)
    # generated | fallback
    source = Column(String(length=20), nullable=False)
    fallback_reason = Column(Text, nullable=True)
    # active | superseded
    status = Column(String(length=20), nullable=False, server_default=sa_text("'active'"))
    milestones = Column(JSONDocument, nullable=False, default=list)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )
