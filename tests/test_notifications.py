"""
Tests for notification rendering and dispatch.

Tests:
- Every registered event renders
- Per-status application copy
- Dispatcher never raises
- Resend integration (mocked)
"""

from unittest.mock import patch

import pytest

from clientflow.email_service import EmailDeliveryError, send_email
from clientflow.email_templates import (
    STATUS_COPY,
    TEMPLATE_REGISTRY,
    application_status_copy,
    render_template,
)
from clientflow.models import Notification
from clientflow.services.notification_service import NotificationDispatcher, Recipient
from clientflow.services.status_automation import APPLICATION_STATUSES

# Superset of every template's parameters; render_template drops what a template does not take
PAYLOAD = {
    "client_name": "Ada Lovelace",
    "client_email": "ada@example.com",
    "client_phone": "+442079460958",
    "client_id": "client-1",
    "request_id": "request-1",
    "preferred_slots": [{"date": "2025-03-01", "time": "14:00"}],
    "scheduled_date": "2025-03-01",
    "scheduled_time": "14:00",
    "meeting_link": "https://meet.example.com/abc",
    "notes": "Bring your CV",
    "reason": "Fully booked",
    "resubmit_url": "http://localhost:5173/consultation",
    "payment_amount": 499.0,
    "payment_method": "bank_transfer",
    "package_tier": "premium",
    "registration_url": "http://localhost:5173/register?token=abc",
    "expires_at": "2025-02-08 09:00 UTC",
    "dashboard_url": "http://localhost:5173/dashboard",
    "onboarding_url": "http://localhost:5173/onboarding",
    "company": "Acme",
    "title": "Staff Engineer",
    "status": "interview_scheduled",
    "interview_date": "2025-03-05 15:00",
    "offer_amount": None,
}


class TestTemplates:
    """Tests for the template registry"""

    @pytest.mark.parametrize("event", sorted(TEMPLATE_REGISTRY))
    def test_every_event_renders(self, event):
        subject, mjml_content = render_template(event, PAYLOAD)

        assert subject
        assert mjml_content.strip().startswith("<mjml>")
        assert "</mjml>" in mjml_content

    def test_unknown_event(self):
        with pytest.raises(KeyError):
            render_template("no_such_event", PAYLOAD)

    def test_payload_values_are_escaped(self):
        _, mjml_content = render_template("consultation_received", {**PAYLOAD, "client_name": "<b>Ada</b>"})
        assert "<b>Ada</b>" not in mjml_content
        assert "&lt;b&gt;Ada&lt;/b&gt;" in mjml_content

    def test_confirmation_carries_slot_and_link(self):
        _, mjml_content = render_template("consultation_confirmed", PAYLOAD)
        assert "2025-03-01" in mjml_content
        assert "https://meet.example.com/abc" in mjml_content


class TestStatusCopy:
    """Each application status has its own copy"""

    def test_every_status_covered(self):
        assert set(STATUS_COPY) == set(APPLICATION_STATUSES)

    def test_copy_is_distinct_per_status(self):
        subjects = {application_status_copy(s, "Acme", "Engineer")["subject"] for s in APPLICATION_STATUSES}
        messages = {application_status_copy(s, "Acme", "Engineer")["message"] for s in APPLICATION_STATUSES}
        assert len(subjects) == len(APPLICATION_STATUSES)
        assert len(messages) == len(APPLICATION_STATUSES)

    def test_placeholders_filled(self):
        copy = application_status_copy("offer_received", "Acme", "Staff Engineer")
        assert "Acme" in copy["subject"]
        assert "Staff Engineer" in copy["message"]
        assert "{" not in "".join(copy.values())

    def test_unknown_status(self):
        with pytest.raises(KeyError):
            application_status_copy("ghosted", "Acme", "Engineer")

    @pytest.mark.parametrize("status", APPLICATION_STATUSES)
    def test_rendered_email_uses_status_headline(self, status):
        subject, mjml_content = render_template("application_status_changed", {**PAYLOAD, "status": status})
        assert subject == application_status_copy(status, "Acme", "Staff Engineer")["subject"]
        assert STATUS_COPY[status]["headline"] in mjml_content.replace("&#x27;", "'")


class TestDispatcher:
    """The dispatcher reports failures but never raises"""

    @pytest.mark.asyncio
    async def test_sends_rendered_email(self, sender):
        dispatcher = NotificationDispatcher(sender=sender, session_factory=None)

        sent = await dispatcher.notify("consultation_received", Recipient("ada@example.com", "Ada"), PAYLOAD)

        assert sent is True
        assert len(sender.sent) == 1
        assert sender.sent[0].to == "ada@example.com"
        assert sender.sent[0].subject == "We received your consultation request"

    @pytest.mark.asyncio
    async def test_send_failure_is_swallowed(self, sender):
        sender.fail = True
        dispatcher = NotificationDispatcher(sender=sender, session_factory=None)

        sent = await dispatcher.notify("consultation_received", Recipient("ada@example.com"), PAYLOAD)

        assert sent is False

    @pytest.mark.asyncio
    async def test_render_failure_is_swallowed(self, sender):
        dispatcher = NotificationDispatcher(sender=sender, session_factory=None)

        sent = await dispatcher.notify("consultation_confirmed", Recipient("ada@example.com"), {})

        assert sent is False
        assert sender.sent == []

    @pytest.mark.asyncio
    async def test_in_app_record_survives_email_failure(self, sender, session_factory, client_account, db):
        sender.fail = True
        dispatcher = NotificationDispatcher(sender=sender, session_factory=session_factory)
        recipient = Recipient(client_account.email, client_account.full_name, client_id=client_account.id)

        await dispatcher.notify("application_status_changed", recipient, {**PAYLOAD, "status": "offer_received"})

        note = db.query(Notification).one()
        assert note.client_id == client_account.id
        assert note.title == "Great news: offer from Acme"
        assert note.message == "You've received a job offer for Staff Engineer at Acme."
        assert note.payload["company"] == "Acme"

    @pytest.mark.asyncio
    async def test_failed_in_app_record_does_not_raise(self, sender, session_factory, db):
        dispatcher = NotificationDispatcher(sender=sender, session_factory=session_factory)

        # No such client: the foreign key may or may not be enforced, either way nothing escapes
        sent = await dispatcher.notify(
            "client_welcome", Recipient("ada@example.com", "Ada", client_id="missing"), PAYLOAD
        )
        assert sent is True

    @pytest.mark.asyncio
    async def test_anonymous_recipients_get_no_in_app_record(self, sender, session_factory, db):
        dispatcher = NotificationDispatcher(sender=sender, session_factory=session_factory)

        await dispatcher.notify("consultation_received", Recipient("ada@example.com"), PAYLOAD)

        assert db.query(Notification).count() == 0


class TestSendEmail:
    """Tests for the Resend integration"""

    @pytest.mark.asyncio
    async def test_sends_compiled_html(self):
        _, mjml_content = render_template("client_welcome", PAYLOAD)

        with patch("clientflow.email_service.RESEND_API_KEY", "re_test"), patch(
            "clientflow.email_service.resend.Emails.send", return_value={"id": "email-1"}
        ) as mock_send:
            response = await send_email("ada@example.com", "Welcome aboard", mjml_content)

        assert response == {"id": "email-1"}
        sent = mock_send.call_args[0][0]
        assert sent["to"] == ["ada@example.com"]
        assert sent["subject"] == "Welcome aboard"
        assert "<html" in sent["html"].lower()

    @pytest.mark.asyncio
    async def test_missing_api_key(self):
        _, mjml_content = render_template("client_welcome", PAYLOAD)

        with patch("clientflow.email_service.RESEND_API_KEY", ""):
            with pytest.raises(EmailDeliveryError):
                await send_email("ada@example.com", "Welcome aboard", mjml_content)

    @pytest.mark.asyncio
    async def test_provider_error_wrapped(self):
        _, mjml_content = render_template("client_welcome", PAYLOAD)

        with patch("clientflow.email_service.RESEND_API_KEY", "re_test"), patch(
            "clientflow.email_service.resend.Emails.send", side_effect=RuntimeError("boom")
        ):
            with pytest.raises(EmailDeliveryError):
                await send_email("ada@example.com", "Welcome aboard", mjml_content)
