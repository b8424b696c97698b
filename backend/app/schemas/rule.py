"""Submission rule schemas."""

import uuid
from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field, model_validator

Operator = Literal[
    "equals", "not_equals",
    "contains", "not_contains",
    "starts_with", "ends_with",
    "greater_than", "less_than",
    "is_empty", "is_not_empty",
]


class FieldCondition(BaseModel):
    operator: Operator
    value: Any = None


class RuleConditions(BaseModel):
    field_conditions: dict[str, FieldCondition] = Field(default_factory=dict)
    user_conditions: dict[str, Any] = Field(default_factory=dict)


class WebhookAction(BaseModel):
    webhook_id: uuid.UUID
    include_fields: Optional[list[str]] = None
    delay_seconds: float = Field(0, ge=0)


class RuleActions(BaseModel):
    webhooks: list[WebhookAction] = Field(default_factory=list)


class RuleCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    campaign_id: Optional[str] = None
    template_id: Optional[str] = None
    priority: int = 0
    is_active: bool = True
    conditions: RuleConditions = Field(default_factory=RuleConditions)
    actions: RuleActions = Field(default_factory=RuleActions)

    @model_validator(mode="after")
    def single_scope(self):
        if self.campaign_id and self.template_id:
            raise ValueError("A rule is scoped to a campaign or a template, not both")
        return self


class RuleUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    priority: Optional[int] = None
    is_active: Optional[bool] = None
    conditions: Optional[RuleConditions] = None
    actions: Optional[RuleActions] = None


class RuleResponse(BaseModel):
    id: uuid.UUID
    name: str
    campaign_id: Optional[str]
    template_id: Optional[str]
    priority: int
    is_active: bool
    conditions: Optional[dict]
    actions: Optional[dict]
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
