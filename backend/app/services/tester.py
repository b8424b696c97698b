"""Synchronous webhook endpoint testing."""

import time
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Mapping

import httpx
import structlog
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.health import WEBHOOK_TESTS
from app.config import settings
from app.models.webhook import Webhook
from app.services.delivery import build_request_headers, build_test_payload, error_text, send_json

logger = structlog.get_logger()


class WebhookNotFoundError(Exception):
    def __init__(self, webhook_id: str):
        self.webhook_id = webhook_id
        super().__init__("Webhook not found")


@dataclass
class ProbeResult:
    success: bool
    status: int
    response: str
    duration: int  # milliseconds

    @property
    def message(self) -> str:
        return "Webhook test successful!" if self.success else "Webhook test failed"

    def summary(self, max_chars: int) -> str:
        return f"{self.status}: {self.response[:max_chars]}"


async def probe_endpoint(
    client: httpx.AsyncClient,
    url: str,
    method: str | None,
    headers: Mapping[str, Any] | None,
    auth_type: str | None,
    auth_config: Mapping[str, Any] | None,
    timeout: float,
) -> ProbeResult:
    """Send the synthetic test payload once and time the round trip. Never raises."""
    request_headers = build_request_headers(headers, auth_type, auth_config)
    start = time.monotonic()
    try:
        resp = await send_json(client, method, url, request_headers, build_test_payload(), timeout)
        outcome = ProbeResult(resp.is_success, resp.status_code, resp.text, 0)
    except Exception as e:
        outcome = ProbeResult(False, 0, error_text(e), 0)
    outcome.duration = int((time.monotonic() - start) * 1000)
    return outcome


class WebhookTester:
    """Tests a stored webhook and records the result on the webhook row."""

    def __init__(self, session: AsyncSession, client: httpx.AsyncClient, timeout: float | None = None):
        self.session = session
        self.client = client
        self.timeout = timeout if timeout is not None else settings.webhook_test_timeout_seconds

    async def test(self, webhook_id: str) -> ProbeResult:
        try:
            key = uuid.UUID(str(webhook_id))
        except ValueError:
            raise WebhookNotFoundError(webhook_id)

        result = await self.session.execute(select(Webhook).where(Webhook.id == key))
        webhook = result.scalar_one_or_none()
        if not webhook:
            raise WebhookNotFoundError(webhook_id)

        outcome = await probe_endpoint(
            self.client, webhook.url, webhook.method,
            webhook.headers, webhook.auth_type, webhook.auth_config,
            self.timeout,
        )
        status = "success" if outcome.success else "failed"

        await self.session.execute(
            update(Webhook)
            .where(Webhook.id == key)
            .values(
                last_tested_at=datetime.utcnow(),
                last_test_status=status,
                last_test_response=outcome.summary(settings.test_response_max_chars),
            )
        )
        await self.session.commit()

        WEBHOOK_TESTS.labels(status=status).inc()
        logger.info("webhook_tested", webhook_id=str(key), status=status,
                    status_code=outcome.status, duration_ms=outcome.duration)
        return outcome
