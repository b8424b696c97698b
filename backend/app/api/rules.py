"""Submission rule admin endpoints."""

from uuid import UUID

import structlog
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.middleware.auth import verify_admin_token
from app.models.rule import SubmissionRule
from app.schemas.rule import RuleCreate, RuleResponse, RuleUpdate

logger = structlog.get_logger()
router = APIRouter(prefix="/rules", tags=["rules"])


@router.get("", response_model=list[RuleResponse])
async def list_rules(
    campaign_id: str | None = None,
    template_id: str | None = None,
    admin: str = Depends(verify_admin_token),
    db: AsyncSession = Depends(get_db),
):
    """List rules in evaluation order (highest priority first)."""
    query = select(SubmissionRule).order_by(SubmissionRule.priority.desc(), SubmissionRule.created_at)
    if campaign_id:
        query = query.where(SubmissionRule.campaign_id == campaign_id)
    if template_id:
        query = query.where(SubmissionRule.template_id == template_id)

    result = await db.execute(query)
    return [RuleResponse.model_validate(r) for r in result.scalars().all()]


@router.get("/{rule_id}", response_model=RuleResponse)
async def get_rule(
    rule_id: UUID,
    admin: str = Depends(verify_admin_token),
    db: AsyncSession = Depends(get_db),
):
    rule = await _get_or_404(db, rule_id)
    return RuleResponse.model_validate(rule)


@router.post("", response_model=RuleResponse, status_code=201)
async def create_rule(
    data: RuleCreate,
    admin: str = Depends(verify_admin_token),
    db: AsyncSession = Depends(get_db),
):
    """Create a rule for a campaign or template."""
    rule = SubmissionRule(
        name=data.name,
        campaign_id=data.campaign_id or None,
        template_id=data.template_id or None,
        priority=data.priority,
        is_active=data.is_active,
        conditions=data.conditions.model_dump(mode="json", exclude_unset=True),
        actions=data.actions.model_dump(mode="json", exclude_none=True),
    )
    db.add(rule)
    await db.commit()
    await db.refresh(rule)

    logger.info("rule_created", rule_id=str(rule.id), priority=rule.priority,
                campaign_id=rule.campaign_id, template_id=rule.template_id)
    return RuleResponse.model_validate(rule)


@router.patch("/{rule_id}", response_model=RuleResponse)
async def update_rule(
    rule_id: UUID,
    data: RuleUpdate,
    admin: str = Depends(verify_admin_token),
    db: AsyncSession = Depends(get_db),
):
    """Partially update a rule. Scope is fixed at creation."""
    rule = await _get_or_404(db, rule_id)

    if data.name is not None:
        rule.name = data.name
    if data.priority is not None:
        rule.priority = data.priority
    if data.is_active is not None:
        rule.is_active = data.is_active
    if data.conditions is not None:
        rule.conditions = data.conditions.model_dump(mode="json", exclude_unset=True)
    if data.actions is not None:
        rule.actions = data.actions.model_dump(mode="json", exclude_none=True)

    await db.commit()
    await db.refresh(rule)

    logger.info("rule_updated", rule_id=str(rule.id))
    return RuleResponse.model_validate(rule)


@router.delete("/{rule_id}", status_code=204)
async def delete_rule(
    rule_id: UUID,
    admin: str = Depends(verify_admin_token),
    db: AsyncSession = Depends(get_db),
):
    rule = await _get_or_404(db, rule_id)
    await db.delete(rule)
    await db.commit()
    logger.info("rule_deleted", rule_id=str(rule_id))


async def _get_or_404(db: AsyncSession, rule_id: UUID) -> SubmissionRule:
    result = await db.execute(select(SubmissionRule).where(SubmissionRule.id == rule_id))
    rule = result.scalar_one_or_none()
    if not rule:
        raise HTTPException(status_code=404, detail="Rule not found")
    return rule
