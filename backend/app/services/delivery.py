"""Outbound webhook delivery.

Request composition (headers, auth, payload) lives here as plain functions so
the rule dispatcher, the webhook tester and the unsaved-config test all build
requests the same way.
"""

import asyncio
import base64
import json
import time
import uuid
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Mapping

import httpx
import structlog
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.health import WEBHOOK_DELIVERIES, DELIVERY_DURATION
from app.config import settings
from app.models.webhook import Webhook, WebhookDelivery
from app.services.conditions import MISSING, resolve_path

logger = structlog.get_logger()

Sleeper = Callable[[float], Awaitable[Any]]


def utc_timestamp() -> str:
    """ISO-8601 UTC timestamp with millisecond precision, e.g. 2024-05-01T12:00:00.123Z."""
    now = datetime.now(timezone.utc)
    return now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"


def _set_header(headers: dict[str, str], name: str, value: str) -> None:
    """Set a header, replacing any existing entry whose name differs only in case."""
    for existing in [key for key in headers if key.lower() == name.lower()]:
        del headers[existing]
    headers[name] = value


def build_request_headers(
    headers: Mapping[str, Any] | None,
    auth_type: str | None,
    auth_config: Mapping[str, Any] | None,
) -> dict[str, str]:
    """Compose outbound headers: JSON content type, static headers, then auth.

    Header names are case-insensitive, so a later entry replaces an earlier one
    regardless of spelling.
    """
    result = {"Content-Type": "application/json"}
    for name, value in (headers or {}).items():
        _set_header(result, str(name), str(value))

    auth = auth_config or {}
    if auth_type == "bearer" and auth.get("token"):
        _set_header(result, "Authorization", f"Bearer {auth['token']}")
    elif auth_type == "basic" and auth.get("username") and auth.get("password"):
        credentials = base64.b64encode(f"{auth['username']}:{auth['password']}".encode()).decode()
        _set_header(result, "Authorization", f"Basic {credentials}")
    elif auth_type == "api_key" and auth.get("key") and auth.get("header"):
        _set_header(result, str(auth["header"]), str(auth["key"]))
    return result


def filter_fields(form_data: Mapping[str, Any], include_fields: list[str]) -> dict[str, Any]:
    """Keep only the listed dotted paths, keyed by the path itself. Absent paths are dropped."""
    filtered = {}
    for path in include_fields:
        value = resolve_path(form_data, path)
        if value is not MISSING:
            filtered[path] = value
    return filtered


def build_delivery_payload(
    action: Mapping[str, Any],
    form_data: Mapping[str, Any],
    user_info: Mapping[str, Any],
    submission_id: str,
    rule_id: str,
) -> dict[str, Any]:
    payload = {
        "form_data": form_data,
        "user_info": user_info,
        "timestamp": utc_timestamp(),
        "submission_id": submission_id,
        "rule_id": rule_id,
    }
    include_fields = action.get("include_fields")
    if isinstance(include_fields, list) and include_fields:
        payload["form_data"] = filter_fields(form_data, include_fields)
    return payload


def build_test_payload() -> dict[str, Any]:
    """Fixed synthetic body sent when testing a webhook endpoint."""
    return {
        "test": True,
        "timestamp": utc_timestamp(),
        "message": "This is a test webhook delivery",
        "form_data": {
            "email": "test@example.com",
            "name": "Test User",
            "message": "Test message",
        },
    }


async def send_json(
    client: httpx.AsyncClient,
    method: str | None,
    url: str,
    headers: Mapping[str, str],
    payload: Mapping[str, Any],
    timeout: float,
) -> httpx.Response:
    """Send ``payload`` as a JSON body. Raises on network errors and timeouts."""
    return await client.request(
        (method or "POST").upper(),
        url,
        headers=dict(headers),
        content=json.dumps(payload),
        timeout=timeout,
    )


def error_text(exc: Exception) -> str:
    return str(exc) or exc.__class__.__name__


def delay_seconds_of(action: Mapping[str, Any]) -> float:
    try:
        delay = float(action.get("delay_seconds") or 0)
    except (TypeError, ValueError):
        return 0.0
    return delay if delay > 0 else 0.0


class WebhookDispatcher:
    """Executes the webhook actions of a matched rule.

    Each call records one ``WebhookDelivery`` row: inserted as ``pending``
    before the request goes out, then updated once with the outcome.
    """

    def __init__(
        self,
        session: AsyncSession,
        client: httpx.AsyncClient,
        timeout: float | None = None,
        sleep: Sleeper = asyncio.sleep,
    ):
        self.session = session
        self.client = client
        self.timeout = timeout if timeout is not None else settings.webhook_timeout_seconds
        self.sleep = sleep

    async def _load_active_webhook(self, webhook_id: Any) -> Webhook | None:
        try:
            key = webhook_id if isinstance(webhook_id, uuid.UUID) else uuid.UUID(str(webhook_id))
        except ValueError:
            return None
        result = await self.session.execute(
            select(Webhook).where(Webhook.id == key, Webhook.is_active == True)
        )
        return result.scalar_one_or_none()

    async def execute(
        self,
        action: Mapping[str, Any],
        form_data: Mapping[str, Any],
        user_info: Mapping[str, Any],
        webhook_id: Any,
        submission_id: uuid.UUID,
        rule_id: uuid.UUID,
    ) -> None:
        """Run one webhook action. Never raises; outcomes end up in the delivery row."""
        try:
            await self._execute(action, form_data, user_info, webhook_id, submission_id, rule_id)
        except Exception as e:
            await self.session.rollback()
            logger.error("webhook_dispatch_error",
                         webhook_id=str(webhook_id), rule_id=str(rule_id), error=str(e))

    async def _execute(
        self,
        action: Mapping[str, Any],
        form_data: Mapping[str, Any],
        user_info: Mapping[str, Any],
        webhook_id: Any,
        submission_id: uuid.UUID,
        rule_id: uuid.UUID,
    ) -> None:
        webhook = await self._load_active_webhook(webhook_id)
        if not webhook:
            logger.info("webhook_not_found_or_inactive", webhook_id=str(webhook_id), rule_id=str(rule_id))
            return

        # Snapshot before any commit/rollback can expire the instance
        hook_id, url, method = webhook.id, webhook.url, webhook.method
        headers = build_request_headers(webhook.headers, webhook.auth_type, webhook.auth_config)
        payload = build_delivery_payload(action, form_data, user_info, str(submission_id), str(rule_id))

        delivery = WebhookDelivery(
            webhook_id=hook_id,
            submission_id=submission_id,
            rule_id=rule_id,
            payload=payload,
            delivery_status="pending",
        )
        self.session.add(delivery)
        await self.session.commit()
        delivery_id = delivery.id

        delay = delay_seconds_of(action)
        if delay > 0:
            logger.info("webhook_delivery_delayed", delivery_id=str(delivery_id), delay_seconds=delay)
            await self.sleep(delay)

        start = time.monotonic()
        try:
            resp = await send_json(self.client, method, url, headers, payload, self.timeout)
        except Exception as e:
            DELIVERY_DURATION.observe(time.monotonic() - start)
            await self._finish(delivery_id, delivery_status="failed", response_body=error_text(e), attempts=1)
            WEBHOOK_DELIVERIES.labels(status="failed").inc()
            logger.warning("webhook_delivery_failed",
                           delivery_id=str(delivery_id), webhook_id=str(hook_id), error=error_text(e))
            return
        DELIVERY_DURATION.observe(time.monotonic() - start)

        status = "success" if resp.is_success else "failed"
        await self._finish(
            delivery_id,
            response_status=resp.status_code,
            response_body=resp.text,
            delivery_status=status,
            delivered_at=datetime.utcnow(),
            attempts=1,
        )
        WEBHOOK_DELIVERIES.labels(status=status).inc()
        logger.info("webhook_delivery_completed",
                    delivery_id=str(delivery_id), webhook_id=str(hook_id),
                    status_code=resp.status_code, delivery_status=status)

    async def _finish(self, delivery_id: uuid.UUID, **values) -> None:
        await self.session.execute(
            update(WebhookDelivery).where(WebhookDelivery.id == delivery_id).values(**values)
        )
        await self.session.commit()
