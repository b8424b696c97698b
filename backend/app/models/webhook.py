"""Webhook destination and delivery audit models."""

import uuid
from datetime import datetime

from sqlalchemy import String, Boolean, Integer, Text, DateTime, ForeignKey, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base, JSONType


class Webhook(Base):
    __tablename__ = "webhooks"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    url: Mapped[str] = mapped_column(Text, nullable=False)
    method: Mapped[str] = mapped_column(String(10), default="POST")  # POST, PUT, PATCH

    # Static headers merged into every request
    headers: Mapped[dict | None] = mapped_column(JSONType, default=dict)

    # none, bearer, basic, api_key
    auth_type: Mapped[str] = mapped_column(String(20), default="none")
    # bearer: {token}  basic: {username, password}  api_key: {header, key}
    auth_config: Mapped[dict | None] = mapped_column(JSONType, default=dict)

    is_active: Mapped[bool] = mapped_column(Boolean, default=True, index=True)

    # Last synchronous test
    last_tested_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    last_test_status: Mapped[str | None] = mapped_column(String(20), nullable=True)  # success, failed
    last_test_response: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self) -> str:
        return f"<Webhook {self.name} {self.method} {self.url}>"


class WebhookDelivery(Base):
    __tablename__ = "webhook_deliveries"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    webhook_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("webhooks.id"), nullable=False, index=True)
    submission_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("form_submissions.id"), nullable=True, index=True
    )
    rule_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("form_submission_rules.id", ondelete="SET NULL"), nullable=True, index=True
    )

    # Exact JSON body sent
    payload: Mapped[dict] = mapped_column(JSONType, nullable=False)

    delivery_status: Mapped[str] = mapped_column(String(20), default="pending", index=True)  # pending, success, failed
    response_status: Mapped[int | None] = mapped_column(Integer, nullable=True)
    response_body: Mapped[str | None] = mapped_column(Text, nullable=True)
    # Single attempt only; no retry loop writes anything other than 1
    attempts: Mapped[int] = mapped_column(Integer, default=0)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, index=True)
    delivered_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
