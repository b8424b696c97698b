"""Tests for inbound payload normalization."""

import pytest
from app.schemas.rule import RuleCreate
from app.schemas.submission import FormSubmissionRequest
from app.schemas.webhook import WebhookCreate, WebhookTestRequest


class TestFormSubmissionNormalization:
    def test_minimal_payload(self):
        payload = FormSubmissionRequest.model_validate({"formData": {"email": "a@b.com"}})
        assert payload.form_data == {"email": "a@b.com"}
        assert payload.user_info == {}
        assert payload.campaign_id is None
        assert payload.template_id is None

    def test_full_payload(self):
        payload = FormSubmissionRequest.model_validate({
            "campaignId": "camp-1",
            "templateId": "tpl-1",
            "formData": {"email": "a@b.com", "address": {"city": "Oslo"}},
            "userInfo": {"device": "mobile"},
            "websiteId": "site-1",
            "trackedUserId": "visitor-1",
        })
        assert payload.campaign_id == "camp-1"
        assert payload.form_data["address"]["city"] == "Oslo"
        assert payload.user_info == {"device": "mobile"}
        assert payload.tracked_user_id == "visitor-1"

    def test_null_user_info_becomes_empty(self):
        payload = FormSubmissionRequest.model_validate({"formData": {}, "userInfo": None})
        assert payload.user_info == {}

    def test_form_data_required(self):
        with pytest.raises(Exception):
            FormSubmissionRequest.model_validate({"campaignId": "camp-1"})

    def test_form_data_must_be_object(self):
        with pytest.raises(Exception):
            FormSubmissionRequest.model_validate({"formData": ["a", "b"]})


class TestWebhookNormalization:
    def test_defaults(self):
        webhook = WebhookCreate(name="Hook", url="https://example.com/in")
        assert webhook.method == "POST"
        assert webhook.auth_type == "none"
        assert webhook.headers == {}
        assert webhook.is_active is True

    def test_url_must_be_absolute(self):
        with pytest.raises(Exception):
            WebhookCreate(name="Hook", url="/relative/path")

    def test_test_request_alias(self):
        assert WebhookTestRequest.model_validate({"webhookId": "abc"}).webhook_id == "abc"


class TestRuleNormalization:
    def test_defaults(self):
        rule = RuleCreate(name="Everything")
        assert rule.priority == 0
        assert rule.is_active is True
        assert rule.actions.webhooks == []

    def test_action_defaults(self):
        rule = RuleCreate.model_validate({
            "name": "Fwd",
            "actions": {"webhooks": [{"webhook_id": "5f0c6e7e-8d0c-4a43-9a53-2f7b1c1f2a10"}]},
        })
        action = rule.actions.webhooks[0]
        assert action.delay_seconds == 0
        assert action.include_fields is None
