"""Form submission intake and submission audit endpoints."""

from uuid import UUID

import httpx
import structlog
from fastapi import APIRouter, Depends, HTTPException, Query, Response
from fastapi.responses import JSONResponse
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_http_client
from app.database import get_db
from app.middleware.auth import verify_admin_token
from app.models.submission import FormSubmission
from app.models.webhook import WebhookDelivery
from app.schemas.submission import (
    ErrorResponse, FormSubmissionDetail, FormSubmissionRequest,
    FormSubmissionResponse, SubmissionResponse,
)
from app.schemas.webhook import DeliveryResponse
from app.services.delivery import WebhookDispatcher
from app.services.submissions import SubmissionProcessor, SubmissionStoreError

logger = structlog.get_logger()
router = APIRouter(prefix="/submissions", tags=["submissions"])


@router.options("", include_in_schema=False)
async def submission_preflight():
    return Response(status_code=200)


@router.post(
    "",
    response_model=SubmissionResponse,
    response_model_exclude_none=True,
    responses={500: {"model": ErrorResponse}},
)
async def submit_form(
    payload: FormSubmissionRequest,
    db: AsyncSession = Depends(get_db),
    client: httpx.AsyncClient = Depends(get_http_client),
):
    """Store a popup form submission and run its campaign/template rules."""
    processor = SubmissionProcessor(db, WebhookDispatcher(db, client))
    try:
        result = await processor.process(
            form_data=payload.form_data,
            user_info=payload.user_info,
            campaign_id=payload.campaign_id,
            template_id=payload.template_id,
            website_id=payload.website_id,
            tracked_user_id=payload.tracked_user_id,
        )
    except SubmissionStoreError as e:
        return JSONResponse(status_code=500, content={"error": str(e)})

    if result.rules_considered == 0:
        return SubmissionResponse(success=True, message="Form submission stored, no rules to process")

    logger.info("form_submission_processed",
                submission_id=str(result.submission_id),
                rules_considered=result.rules_considered,
                rules_matched=len(result.matched_rule_ids))
    return SubmissionResponse(
        success=True,
        submission_id=str(result.submission_id),
        processed_rules=len(result.matched_rule_ids),
        message="Form submission processed successfully",
    )


@router.get("", response_model=list[FormSubmissionResponse])
async def list_submissions(
    campaign_id: str | None = None,
    template_id: str | None = None,
    website_id: str | None = None,
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100),
    admin: str = Depends(verify_admin_token),
    db: AsyncSession = Depends(get_db),
):
    """List stored submissions, newest first."""
    query = select(FormSubmission).order_by(FormSubmission.created_at.desc())
    if campaign_id:
        query = query.where(FormSubmission.campaign_id == campaign_id)
    if template_id:
        query = query.where(FormSubmission.template_id == template_id)
    if website_id:
        query = query.where(FormSubmission.website_id == website_id)
    query = query.offset((page - 1) * per_page).limit(per_page)

    result = await db.execute(query)
    return [FormSubmissionResponse.model_validate(s) for s in result.scalars().all()]


@router.get("/{submission_id}", response_model=FormSubmissionDetail)
async def get_submission(
    submission_id: UUID,
    admin: str = Depends(verify_admin_token),
    db: AsyncSession = Depends(get_db),
):
    """Get one submission with the deliveries it triggered."""
    result = await db.execute(select(FormSubmission).where(FormSubmission.id == submission_id))
    submission = result.scalar_one_or_none()
    if not submission:
        raise HTTPException(status_code=404, detail="Submission not found")

    deliveries = await db.execute(
        select(WebhookDelivery)
        .where(WebhookDelivery.submission_id == submission_id)
        .order_by(WebhookDelivery.created_at)
    )
    detail = FormSubmissionDetail.model_validate(submission)
    detail.deliveries = [DeliveryResponse.model_validate(d) for d in deliveries.scalars().all()]
    return detail
