"""Saved plan ORM model."""
from __future__ import annotations

from uuid import uuid4

from sqlalchemy import Column, DateTime, ForeignKey, Index, String, Text, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from milestone_ai.db.base import Base
from milestone_ai.db.types import JSONDocument


class SavedPlan(Base):
    __tablename__ = "saved_plans"
    __table_args__ = (Index("ix_saved_plans_user_id_goal", "user_id", "goal"),)

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    goal = Column(Text, nullable=False)
    # Whole plan tree; replaced wholesale on every write.
    plan = Column(JSONDocument, nullable=False)
    interaction_mode = Column(String(length=20), nullable=False, default="plan")
    chat_history = Column(JSONDocument, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    user = relationship("User", back_populates="plans")
