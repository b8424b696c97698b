"""Webhook destination endpoints: testing and admin CRUD."""

from uuid import UUID

import httpx
import structlog
from fastapi import APIRouter, Depends, HTTPException, Query, Response
from fastapi.responses import JSONResponse
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_http_client
from app.config import settings
from app.database import get_db
from app.middleware.auth import verify_admin_token
from app.models.webhook import Webhook
from app.schemas.submission import ErrorResponse
from app.schemas.webhook import (
    WebhookConfig, WebhookCreate, WebhookResponse, WebhookTestRequest,
    WebhookTestResponse, WebhookUpdate,
)
from app.services.tester import WebhookNotFoundError, WebhookTester, probe_endpoint

logger = structlog.get_logger()
router = APIRouter(prefix="/webhooks", tags=["webhooks"])


@router.options("/test", include_in_schema=False)
async def test_preflight():
    return Response(status_code=200)


@router.post("/test", response_model=WebhookTestResponse, responses={500: {"model": ErrorResponse}})
async def test_webhook(
    payload: WebhookTestRequest,
    db: AsyncSession = Depends(get_db),
    client: httpx.AsyncClient = Depends(get_http_client),
):
    """Send a synthetic delivery to a stored webhook and record the outcome on it."""
    try:
        outcome = await WebhookTester(db, client).test(payload.webhook_id)
    except WebhookNotFoundError as e:
        logger.warning("webhook_test_target_missing", webhook_id=e.webhook_id)
        return JSONResponse(status_code=500, content={"error": str(e)})

    return WebhookTestResponse(
        success=outcome.success,
        status=outcome.status,
        response=outcome.response,
        duration=outcome.duration,
        message=outcome.message,
    )


@router.post("/test-config", response_model=WebhookTestResponse)
async def test_webhook_config(
    config: WebhookConfig,
    admin: str = Depends(verify_admin_token),
    client: httpx.AsyncClient = Depends(get_http_client),
):
    """Test an unsaved webhook configuration before creating it. Nothing is stored."""
    outcome = await probe_endpoint(
        client, config.url, config.method,
        config.headers, config.auth_type, config.auth_config,
        settings.webhook_test_timeout_seconds,
    )
    logger.info("webhook_config_tested", url=config.url, success=outcome.success,
                status_code=outcome.status)
    return WebhookTestResponse(
        success=outcome.success,
        status=outcome.status,
        response=outcome.response,
        duration=outcome.duration,
        message=outcome.message,
    )


@router.get("", response_model=list[WebhookResponse])
async def list_webhooks(
    include_inactive: bool = True,
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100),
    admin: str = Depends(verify_admin_token),
    db: AsyncSession = Depends(get_db),
):
    """List webhooks, newest first."""
    query = select(Webhook).order_by(Webhook.created_at.desc())
    if not include_inactive:
        query = query.where(Webhook.is_active == True)
    query = query.offset((page - 1) * per_page).limit(per_page)

    result = await db.execute(query)
    return [_webhook_to_response(w) for w in result.scalars().all()]


@router.get("/{webhook_id}", response_model=WebhookResponse)
async def get_webhook(
    webhook_id: UUID,
    admin: str = Depends(verify_admin_token),
    db: AsyncSession = Depends(get_db),
):
    webhook = await _get_or_404(db, webhook_id)
    return _webhook_to_response(webhook)


@router.post("", response_model=WebhookResponse, status_code=201)
async def create_webhook(
    data: WebhookCreate,
    admin: str = Depends(verify_admin_token),
    db: AsyncSession = Depends(get_db),
):
    """Create a webhook destination."""
    webhook = Webhook(
        name=data.name,
        url=data.url,
        method=data.method,
        headers=data.headers,
        auth_type=data.auth_type,
        auth_config=data.auth_config,
        is_active=data.is_active,
    )
    db.add(webhook)
    await db.commit()
    await db.refresh(webhook)

    logger.info("webhook_created", webhook_id=str(webhook.id), url=webhook.url)
    return _webhook_to_response(webhook)


@router.patch("/{webhook_id}", response_model=WebhookResponse)
async def update_webhook(
    webhook_id: UUID,
    data: WebhookUpdate,
    admin: str = Depends(verify_admin_token),
    db: AsyncSession = Depends(get_db),
):
    """Partially update a webhook."""
    webhook = await _get_or_404(db, webhook_id)

    for field, value in data.model_dump(exclude_unset=True).items():
        if value is None and field != "is_active":
            continue
        setattr(webhook, field, value)

    await db.commit()
    await db.refresh(webhook)

    logger.info("webhook_updated", webhook_id=str(webhook.id))
    return _webhook_to_response(webhook)


@router.delete("/{webhook_id}", status_code=204)
async def delete_webhook(
    webhook_id: UUID,
    admin: str = Depends(verify_admin_token),
    db: AsyncSession = Depends(get_db),
):
    """Soft-delete a webhook (deactivate). Delivery history is kept."""
    webhook = await _get_or_404(db, webhook_id)
    webhook.is_active = False
    await db.commit()
    logger.info("webhook_deactivated", webhook_id=str(webhook_id))


async def _get_or_404(db: AsyncSession, webhook_id: UUID) -> Webhook:
    result = await db.execute(select(Webhook).where(Webhook.id == webhook_id))
    webhook = result.scalar_one_or_none()
    if not webhook:
        raise HTTPException(status_code=404, detail="Webhook not found")
    return webhook


def _webhook_to_response(webhook: Webhook) -> WebhookResponse:
    """Convert webhook model to response, masking auth secrets."""
    return WebhookResponse(
        id=webhook.id,
        name=webhook.name,
        url=webhook.url,
        method=webhook.method,
        headers=webhook.headers or {},
        auth_type=webhook.auth_type,
        auth_fields=sorted((webhook.auth_config or {}).keys()),
        is_active=webhook.is_active,
        last_tested_at=webhook.last_tested_at,
        last_test_status=webhook.last_test_status,
        last_test_response=webhook.last_test_response,
        created_at=webhook.created_at,
        updated_at=webhook.updated_at,
    )
