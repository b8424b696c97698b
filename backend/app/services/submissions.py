"""Form submission processing.

Pipeline per inbound submission:
1. Store the raw submission (the only step whose failure reaches the caller)
2. Select active rules for the campaign/template, highest priority first
3. Evaluate each rule's conditions against form data and user info
4. Dispatch the webhook actions of every matching rule
5. Record which rules matched on the submission
"""

import uuid
from dataclasses import dataclass, field
from typing import Any

import structlog
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.health import FORM_SUBMISSIONS, RULES_MATCHED, RULE_ERRORS
from app.models.rule import SubmissionRule
from app.models.submission import FormSubmission
from app.services.conditions import evaluate_conditions
from app.services.delivery import WebhookDispatcher

logger = structlog.get_logger()


class SubmissionStoreError(Exception):
    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Failed to store form submission: {reason}")


@dataclass
class CandidateRule:
    """Detached copy of a rule row; survives session rollbacks mid-loop."""
    id: uuid.UUID
    conditions: dict | None
    actions: dict | None


@dataclass
class ProcessingResult:
    submission_id: uuid.UUID
    rules_considered: int
    matched_rule_ids: list[uuid.UUID] = field(default_factory=list)


class SubmissionProcessor:
    def __init__(self, session: AsyncSession, dispatcher: WebhookDispatcher):
        self.session = session
        self.dispatcher = dispatcher

    async def store(
        self,
        form_data: dict[str, Any],
        user_info: dict[str, Any],
        campaign_id: str | None = None,
        template_id: str | None = None,
        website_id: str | None = None,
        tracked_user_id: str | None = None,
    ) -> uuid.UUID:
        submission = FormSubmission(
            campaign_id=campaign_id or None,
            template_id=template_id or None,
            form_data=form_data,
            user_info=user_info,
            website_id=website_id or None,
            tracked_user_id=tracked_user_id or None,
        )
        try:
            self.session.add(submission)
            await self.session.commit()
        except Exception as e:
            await self.session.rollback()
            FORM_SUBMISSIONS.labels(outcome="store_failed").inc()
            logger.error("form_submission_store_failed", error=str(e))
            raise SubmissionStoreError(str(e)) from e

        FORM_SUBMISSIONS.labels(outcome="stored").inc()
        logger.info("form_submission_stored", submission_id=str(submission.id),
                    campaign_id=campaign_id, template_id=template_id)
        return submission.id

    async def select_rules(self, campaign_id: str | None, template_id: str | None) -> list[CandidateRule]:
        """Active rules for the campaign (preferred) or template, priority descending."""
        if campaign_id:
            scope = SubmissionRule.campaign_id == campaign_id
        elif template_id:
            scope = SubmissionRule.template_id == template_id
        else:
            return []

        result = await self.session.execute(
            select(SubmissionRule)
            .where(scope, SubmissionRule.is_active == True)
            .order_by(SubmissionRule.priority.desc(), SubmissionRule.created_at)
        )
        return [CandidateRule(r.id, r.conditions, r.actions) for r in result.scalars().all()]

    async def process(
        self,
        form_data: dict[str, Any],
        user_info: dict[str, Any] | None = None,
        campaign_id: str | None = None,
        template_id: str | None = None,
        website_id: str | None = None,
        tracked_user_id: str | None = None,
    ) -> ProcessingResult:
        """Store then process a submission. Raises SubmissionStoreError only."""
        user_info = user_info or {}
        submission_id = await self.store(
            form_data, user_info, campaign_id, template_id, website_id, tracked_user_id,
        )

        try:
            rules = await self.select_rules(campaign_id, template_id)
        except Exception as e:
            await self.session.rollback()
            logger.error("rule_selection_failed", submission_id=str(submission_id), error=str(e))
            rules = []

        result = ProcessingResult(submission_id=submission_id, rules_considered=len(rules))
        if not rules:
            logger.info("no_rules_to_process", submission_id=str(submission_id))
            return result

        for rule in rules:
            try:
                await self._apply_rule(rule, form_data, user_info, submission_id, result)
            except Exception as e:
                await self.session.rollback()
                RULE_ERRORS.inc()
                logger.error("rule_processing_failed", rule_id=str(rule.id),
                             submission_id=str(submission_id), error=str(e))

        await self._record_processed_rules(submission_id, result.matched_rule_ids)
        return result

    async def _apply_rule(
        self,
        rule: CandidateRule,
        form_data: dict[str, Any],
        user_info: dict[str, Any],
        submission_id: uuid.UUID,
        result: ProcessingResult,
    ) -> None:
        if not evaluate_conditions(rule.conditions, form_data, user_info):
            return

        result.matched_rule_ids.append(rule.id)
        RULES_MATCHED.inc()
        logger.info("rule_matched", rule_id=str(rule.id), submission_id=str(submission_id))

        webhooks = (rule.actions or {}).get("webhooks")
        if not isinstance(webhooks, list):
            return
        for action in webhooks:
            if not isinstance(action, dict):
                continue
            await self.dispatcher.execute(
                action, form_data, user_info, action.get("webhook_id"), submission_id, rule.id,
            )

    async def _record_processed_rules(self, submission_id: uuid.UUID, rule_ids: list[uuid.UUID]) -> None:
        try:
            await self.session.execute(
                update(FormSubmission)
                .where(FormSubmission.id == submission_id)
                .values(processed_rules=[str(rule_id) for rule_id in rule_ids])
            )
            await self.session.commit()
        except Exception as e:
            await self.session.rollback()
            logger.error("processed_rules_update_failed", submission_id=str(submission_id), error=str(e))
