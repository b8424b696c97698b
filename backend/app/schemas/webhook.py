"""Webhook configuration, test and delivery schemas."""

import uuid
from datetime import datetime
from typing import Any, Literal, Optional
from urllib.parse import urlparse

from pydantic import BaseModel, Field, field_validator

HttpMethod = Literal["POST", "PUT", "PATCH"]
AuthType = Literal["none", "bearer", "basic", "api_key"]


def _validate_url(value: str) -> str:
    parsed = urlparse(value)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValueError("Webhook URL must be an absolute http(s) URL")
    return value


class WebhookConfig(BaseModel):
    """Destination settings shared by create and unsaved-config test."""
    url: str = Field(..., min_length=1)
    method: HttpMethod = "POST"
    headers: dict[str, str] = Field(default_factory=dict)
    auth_type: AuthType = "none"
    auth_config: dict[str, Any] = Field(default_factory=dict)

    @field_validator("url")
    @classmethod
    def url_must_be_http(cls, v):
        return _validate_url(v)


class WebhookCreate(WebhookConfig):
    name: str = Field(..., min_length=1, max_length=255)
    is_active: bool = True


class WebhookUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    url: Optional[str] = None
    method: Optional[HttpMethod] = None
    headers: Optional[dict[str, str]] = None
    auth_type: Optional[AuthType] = None
    auth_config: Optional[dict[str, Any]] = None
    is_active: Optional[bool] = None

    @field_validator("url")
    @classmethod
    def url_must_be_http(cls, v):
        return v if v is None else _validate_url(v)


class WebhookResponse(BaseModel):
    id: uuid.UUID
    name: str
    url: str
    method: str
    headers: dict[str, Any]
    auth_type: str
    auth_fields: list[str]  # names of configured auth keys, never their values
    is_active: bool
    last_tested_at: Optional[datetime]
    last_test_status: Optional[str]
    last_test_response: Optional[str]
    created_at: datetime
    updated_at: datetime


class WebhookTestRequest(BaseModel):
    webhook_id: str = Field(..., alias="webhookId")

    model_config = {"populate_by_name": True}


class WebhookTestResponse(BaseModel):
    success: bool
    status: int
    response: str
    duration: int  # milliseconds
    message: str


class DeliveryResponse(BaseModel):
    id: uuid.UUID
    webhook_id: uuid.UUID
    submission_id: Optional[uuid.UUID]
    rule_id: Optional[uuid.UUID]
    payload: dict
    delivery_status: str
    response_status: Optional[int]
    response_body: Optional[str]
    attempts: int
    created_at: datetime
    delivered_at: Optional[datetime]

    model_config = {"from_attributes": True}
