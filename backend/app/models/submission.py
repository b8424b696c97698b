"""Form submission model - raw payload captured from a deployed popup."""

import uuid
from datetime import datetime

from sqlalchemy import String, DateTime, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base, JSONType


class FormSubmission(Base):
    __tablename__ = "form_submissions"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    # Linkage to the collaborator entities that produced the submission
    campaign_id: Mapped[str | None] = mapped_column(String(255), nullable=True, index=True)
    template_id: Mapped[str | None] = mapped_column(String(255), nullable=True, index=True)
    website_id: Mapped[str | None] = mapped_column(String(255), nullable=True, index=True)
    tracked_user_id: Mapped[str | None] = mapped_column(String(255), nullable=True)

    # Payload
    form_data: Mapped[dict] = mapped_column(JSONType, nullable=False)
    user_info: Mapped[dict] = mapped_column(JSONType, default=dict)

    # Rule ids that matched, in evaluation order. Written once after processing.
    processed_rules: Mapped[list | None] = mapped_column(JSONType, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, index=True)

    def __repr__(self) -> str:
        return f"<FormSubmission {self.id}>"
