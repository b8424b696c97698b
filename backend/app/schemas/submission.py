"""Form submission schemas."""

import uuid
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator

from app.schemas.webhook import DeliveryResponse


class FormSubmissionRequest(BaseModel):
    """Inbound submission from a deployed popup (camelCase on the wire)."""
    campaign_id: Optional[str] = Field(None, alias="campaignId")
    template_id: Optional[str] = Field(None, alias="templateId")
    form_data: dict[str, Any] = Field(..., alias="formData")
    user_info: Optional[dict[str, Any]] = Field(None, alias="userInfo")
    website_id: Optional[str] = Field(None, alias="websiteId")
    tracked_user_id: Optional[str] = Field(None, alias="trackedUserId")

    model_config = {"populate_by_name": True}

    @field_validator("user_info")
    @classmethod
    def default_user_info(cls, v):
        return v or {}


class SubmissionResponse(BaseModel):
    success: bool
    submission_id: Optional[str] = None
    processed_rules: Optional[int] = None
    message: str


class ErrorResponse(BaseModel):
    error: str


class FormSubmissionResponse(BaseModel):
    id: uuid.UUID
    campaign_id: Optional[str]
    template_id: Optional[str]
    website_id: Optional[str]
    tracked_user_id: Optional[str]
    form_data: dict
    user_info: Optional[dict]
    processed_rules: Optional[list[str]]
    created_at: datetime

    model_config = {"from_attributes": True}


class FormSubmissionDetail(FormSubmissionResponse):
    deliveries: list[DeliveryResponse] = []
