#!/usr/bin/env python3
"""Seed the database with a demo webhook and a lead-capture rule."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "backend"))

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from app.config import settings
from app.models.rule import SubmissionRule
from app.models.webhook import Webhook

DEMO_CAMPAIGN_ID = "demo-campaign"


def seed():
    engine = create_engine(settings.database_url_sync)
    Session = sessionmaker(bind=engine)
    session = Session()

    existing = session.query(SubmissionRule).filter_by(campaign_id=DEMO_CAMPAIGN_ID).first()
    if existing:
        print(f"Demo rule already exists: {existing.id}")
        session.close()
        return

    webhook = Webhook(
        name="Demo request bin",
        url="https://httpbin.org/post",
        method="POST",
        headers={"X-Source": "popup-demo"},
        auth_type="bearer",
        auth_config={"token": "demo-token"},
        is_active=True,
    )
    session.add(webhook)
    session.flush()

    rule = SubmissionRule(
        name="Forward captured emails",
        campaign_id=DEMO_CAMPAIGN_ID,
        priority=10,
        is_active=True,
        conditions={"field_conditions": {"email": {"operator": "is_not_empty"}}},
        actions={"webhooks": [{"webhook_id": str(webhook.id), "include_fields": ["email", "name"]}]},
    )
    session.add(rule)
    session.commit()
    print(f"Created demo webhook {webhook.id} and rule {rule.id} (campaign: {DEMO_CAMPAIGN_ID})")
    session.close()


if __name__ == "__main__":
    seed()
