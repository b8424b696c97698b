"""Webhook delivery audit endpoints."""

from datetime import datetime, timedelta
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.middleware.auth import verify_admin_token
from app.models.webhook import WebhookDelivery
from app.schemas.webhook import DeliveryResponse

router = APIRouter(prefix="/deliveries", tags=["deliveries"])


@router.get("", response_model=list[DeliveryResponse])
async def list_deliveries(
    webhook_id: UUID | None = None,
    submission_id: UUID | None = None,
    rule_id: UUID | None = None,
    status: str | None = Query(None, pattern="^(pending|success|failed)$"),
    stale_after_seconds: int | None = Query(None, ge=0),
    page: int = Query(1, ge=1),
    per_page: int = Query(50, ge=1, le=200),
    admin: str = Depends(verify_admin_token),
    db: AsyncSession = Depends(get_db),
):
    """List delivery records with filters.

    ``stale_after_seconds`` narrows to pending deliveries created more than
    that many seconds ago: sends lost to a restart during their delay.
    """
    query = select(WebhookDelivery).order_by(WebhookDelivery.created_at.desc())

    if webhook_id:
        query = query.where(WebhookDelivery.webhook_id == webhook_id)
    if submission_id:
        query = query.where(WebhookDelivery.submission_id == submission_id)
    if rule_id:
        query = query.where(WebhookDelivery.rule_id == rule_id)
    if stale_after_seconds is not None:
        cutoff = datetime.utcnow() - timedelta(seconds=stale_after_seconds)
        query = query.where(
            WebhookDelivery.delivery_status == "pending",
            WebhookDelivery.created_at < cutoff,
        )
    elif status:
        query = query.where(WebhookDelivery.delivery_status == status)

    query = query.offset((page - 1) * per_page).limit(per_page)

    result = await db.execute(query)
    return [DeliveryResponse.model_validate(d) for d in result.scalars().all()]
