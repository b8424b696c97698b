from app.models.submission import FormSubmission
from app.models.rule import SubmissionRule
from app.models.webhook import Webhook, WebhookDelivery

__all__ = ["FormSubmission", "SubmissionRule", "Webhook", "WebhookDelivery"]
