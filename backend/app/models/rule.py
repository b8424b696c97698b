"""Submission rule model - prioritized conditional policy for a campaign or template."""

import uuid
from datetime import datetime

from sqlalchemy import String, Boolean, Integer, DateTime, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base, JSONType


class SubmissionRule(Base):
    __tablename__ = "form_submission_rules"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(255), nullable=False)

    # Scope: one of these is set
    campaign_id: Mapped[str | None] = mapped_column(String(255), nullable=True, index=True)
    template_id: Mapped[str | None] = mapped_column(String(255), nullable=True, index=True)

    priority: Mapped[int] = mapped_column(Integer, default=0, index=True)  # higher runs first
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, index=True)

    # {"field_conditions": {"a.b": {"operator": ..., "value": ...}}, "user_conditions": {...}}
    conditions: Mapped[dict | None] = mapped_column(JSONType, default=dict)
    # {"webhooks": [{"webhook_id": ..., "include_fields": [...], "delay_seconds": 0}]}
    actions: Mapped[dict | None] = mapped_column(JSONType, default=dict)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self) -> str:
        return f"<SubmissionRule {self.name} p={self.priority}>"
