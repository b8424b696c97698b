"""Shared request dependencies."""

from typing import AsyncIterator

import httpx

from app.config import settings


async def get_http_client() -> AsyncIterator[httpx.AsyncClient]:
    """Outbound client for webhook calls, one per request."""
    async with httpx.AsyncClient(timeout=settings.webhook_timeout_seconds) as client:
        yield client
