"""Health check and metrics endpoints."""

from fastapi import APIRouter, Response
from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from sqlalchemy import text

from app.database import async_session
from app.schemas.common import HealthResponse

router = APIRouter(tags=["health"])

# Prometheus metrics
FORM_SUBMISSIONS = Counter("form_submissions_total", "Form submissions received", ["outcome"])
RULES_MATCHED = Counter("rules_matched_total", "Submission rules whose conditions matched")
RULE_ERRORS = Counter("rule_errors_total", "Submission rules that failed during processing")
WEBHOOK_DELIVERIES = Counter("webhook_deliveries_total", "Webhook delivery attempts", ["status"])
WEBHOOK_TESTS = Counter("webhook_tests_total", "Webhook endpoint tests", ["status"])
DELIVERY_DURATION = Histogram("webhook_delivery_duration_seconds", "Outbound webhook round trip")


@router.get("/health", response_model=HealthResponse)
async def health_check():
    """Health check endpoint."""
    db_status = "ok"
    try:
        async with async_session() as session:
            await session.execute(text("SELECT 1"))
    except Exception:
        db_status = "error"

    return HealthResponse(
        status="healthy" if db_status == "ok" else "degraded",
        db=db_status,
    )


@router.get("/metrics")
async def metrics():
    """Prometheus metrics endpoint."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
