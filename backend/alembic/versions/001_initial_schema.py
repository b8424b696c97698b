"""Initial schema: submissions, rules, webhooks, deliveries.

Revision ID: 001
Revises: None
Create Date: 2025-01-01
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID, JSONB

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Form submissions
    op.create_table(
        "form_submissions",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("campaign_id", sa.String(255), nullable=True),
        sa.Column("template_id", sa.String(255), nullable=True),
        sa.Column("website_id", sa.String(255), nullable=True),
        sa.Column("tracked_user_id", sa.String(255), nullable=True),
        sa.Column("form_data", JSONB, nullable=False),
        sa.Column("user_info", JSONB, server_default="{}"),
        sa.Column("processed_rules", JSONB, nullable=True),
        sa.Column("created_at", sa.DateTime, server_default=sa.func.now()),
    )
    op.create_index("ix_form_submissions_campaign_id", "form_submissions", ["campaign_id"])
    op.create_index("ix_form_submissions_template_id", "form_submissions", ["template_id"])
    op.create_index("ix_form_submissions_website_id", "form_submissions", ["website_id"])
    op.create_index("ix_form_submissions_created_at", "form_submissions", ["created_at"])

    # Rules
    op.create_table(
        "form_submission_rules",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("campaign_id", sa.String(255), nullable=True),
        sa.Column("template_id", sa.String(255), nullable=True),
        sa.Column("priority", sa.Integer, server_default="0"),
        sa.Column("is_active", sa.Boolean, server_default="true"),
        sa.Column("conditions", JSONB, server_default="{}"),
        sa.Column("actions", JSONB, server_default="{}"),
        sa.Column("created_at", sa.DateTime, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime, server_default=sa.func.now()),
    )
    op.create_index("ix_form_submission_rules_campaign_id", "form_submission_rules", ["campaign_id"])
    op.create_index("ix_form_submission_rules_template_id", "form_submission_rules", ["template_id"])
    op.create_index("ix_form_submission_rules_priority", "form_submission_rules", ["priority"])
    op.create_index("ix_form_submission_rules_is_active", "form_submission_rules", ["is_active"])

    # Webhooks
    op.create_table(
        "webhooks",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("url", sa.Text, nullable=False),
        sa.Column("method", sa.String(10), server_default="POST"),
        sa.Column("headers", JSONB, server_default="{}"),
        sa.Column("auth_type", sa.String(20), server_default="none"),
        sa.Column("auth_config", JSONB, server_default="{}"),
        sa.Column("is_active", sa.Boolean, server_default="true"),
        sa.Column("last_tested_at", sa.DateTime, nullable=True),
        sa.Column("last_test_status", sa.String(20), nullable=True),
        sa.Column("last_test_response", sa.Text, nullable=True),
        sa.Column("created_at", sa.DateTime, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime, server_default=sa.func.now()),
    )
    op.create_index("ix_webhooks_is_active", "webhooks", ["is_active"])

    # Deliveries
    op.create_table(
        "webhook_deliveries",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("webhook_id", UUID(as_uuid=True), sa.ForeignKey("webhooks.id"), nullable=False),
        sa.Column("submission_id", UUID(as_uuid=True), sa.ForeignKey("form_submissions.id"), nullable=True),
        sa.Column(
            "rule_id", UUID(as_uuid=True),
            sa.ForeignKey("form_submission_rules.id", ondelete="SET NULL"), nullable=True,
        ),
        sa.Column("payload", JSONB, nullable=False),
        sa.Column("delivery_status", sa.String(20), server_default="pending"),
        sa.Column("response_status", sa.Integer, nullable=True),
        sa.Column("response_body", sa.Text, nullable=True),
        sa.Column("attempts", sa.Integer, server_default="0"),
        sa.Column("created_at", sa.DateTime, server_default=sa.func.now()),
        sa.Column("delivered_at", sa.DateTime, nullable=True),
    )
    op.create_index("ix_webhook_deliveries_webhook_id", "webhook_deliveries", ["webhook_id"])
    op.create_index("ix_webhook_deliveries_submission_id", "webhook_deliveries", ["submission_id"])
    op.create_index("ix_webhook_deliveries_rule_id", "webhook_deliveries", ["rule_id"])
    op.create_index("ix_webhook_deliveries_delivery_status", "webhook_deliveries", ["delivery_status"])
    op.create_index("ix_webhook_deliveries_created_at", "webhook_deliveries", ["created_at"])


def downgrade() -> None:
    op.drop_table("webhook_deliveries")
    op.drop_table("webhooks")
    op.drop_table("form_submission_rules")
    op.drop_table("form_submissions")
