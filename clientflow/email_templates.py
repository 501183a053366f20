"""
MJML Email Templates
All email templates using MJML for responsive, cross-client compatibility
"""

import inspect
from html import escape
from typing import Callable, Optional

from .config import FRONTEND_URL

THEME = {
    "primary": "#2563eb",
    "primary_dark": "#1d4ed8",
    "primary_light": "#dbeafe",
    "background": "#f8fafc",
    "card_bg": "#ffffff",
    "text_primary": "#0f172a",
    "text_secondary": "#334155",
    "text_muted": "#64748b",
    "border": "#e2e8f0",
    "success": "#16a34a",
    "warning": "#f59e0b",
    "danger": "#ef4444",
}

BRAND_NAME = "Client Services"


def _e(value) -> str:
    """Escape a payload value for interpolation into markup"""
    return escape("" if value is None else str(value))


def get_base_template(
    title: str,
    preview_text: str,
    content_sections: str,
    cta_url: Optional[str] = None,
    cta_label: Optional[str] = None,
) -> str:
    """Base MJML template wrapper for all emails"""

    cta_section = ""
    if cta_url and cta_label:
        cta_section = f"""
        <mj-section padding="20px 0">
          <mj-column>
            <mj-button
              href="{_e(cta_url)}"
              background-color="{THEME['primary']}"
              color="#ffffff"
              font-weight="600"
              border-radius="8px"
              padding="18px 40px"
              font-size="16px">
              {_e(cta_label)}
            </mj-button>
          </mj-column>
        </mj-section>
        """

    return f"""
    <mjml>
      <mj-head>
        <mj-title>{_e(title)}</mj-title>
        <mj-preview>{_e(preview_text)}</mj-preview>
        <mj-attributes>
          <mj-all font-family="-apple-system, BlinkMacSystemFont, 'Segoe UI', 'Helvetica Neue', Arial, sans-serif" />
          <mj-text font-size="16px" line-height="1.6" color="{THEME['text_secondary']}" />
        </mj-attributes>
      </mj-head>
      <mj-body background-color="{THEME['background']}">
        <mj-section background-color="#ffffff" padding="32px 20px 0 20px">
          <mj-column>
            <mj-text font-size="18px" font-weight="700" color="{THEME['primary_dark']}" padding="0">
              {BRAND_NAME}
            </mj-text>
            <mj-divider border-color="{THEME['border']}" border-width="1px" padding="24px 0 32px 0" />
          </mj-column>
        </mj-section>

        <!-- Main Content -->
        <mj-section background-color="#ffffff" padding="0 40px 48px 40px">
          <mj-column>
            <mj-text font-size="24px" font-weight="600" color="{THEME['text_primary']}" line-height="1.3" padding="0 0 16px 0">
              {_e(title)}
            </mj-text>

            {content_sections}
          </mj-column>
        </mj-section>

        {cta_section}

        <!-- Footer -->
        <mj-section padding="32px 20px">
          <mj-column>
            <mj-text align="center" font-size="13px" color="#94a3b8" padding="0">
              You're receiving this because you contacted {BRAND_NAME}.
            </mj-text>
          </mj-column>
        </mj-section>
      </mj-body>
    </mjml>
    """


def _paragraphs(*lines: str) -> str:
    return "\n".join(f"<mj-text>{line}</mj-text>" for line in lines if line)


def _detail_table(rows: list[tuple[str, str]]) -> str:
    cells = "".join(
        f"<tr><td style=\"padding:6px 12px 6px 0;color:{THEME['text_muted']}\">{_e(label)}</td>"
        f"<td style=\"padding:6px 0;font-weight:600\">{_e(value)}</td></tr>"
        for label, value in rows
        if value not in (None, "")
    )
    return f"""
    <mj-table padding="8px 0 16px 0" font-size="15px" color="{THEME['text_secondary']}">
      {cells}
    </mj-table>
    """


def _format_slots(slots: list[dict]) -> str:
    return ", ".join(f"{slot.get('date')} {slot.get('time')}" for slot in slots or [])


# ============================================================================
# CONSULTATION
# ============================================================================


def consultation_received_template(client_name: str, preferred_slots: list[dict]) -> str:
    """Prospect: request received"""
    content = _paragraphs(
        f"Hi {_e(client_name)},",
        "Thanks for requesting a consultation. Our team will review your request and "
        "confirm one of your proposed times within 24 hours.",
    ) + _detail_table([("Proposed times", _format_slots(preferred_slots))])
    return get_base_template(
        title="We received your consultation request",
        preview_text="Your consultation request is in review",
        content_sections=content,
    )


def new_consultation_request_template(
    client_name: str,
    client_email: str,
    client_phone: Optional[str],
    preferred_slots: list[dict],
    request_id: str,
) -> str:
    """Operator: new request to review"""
    content = _paragraphs(
        "A new consultation request is waiting for review."
    ) + _detail_table(
        [
            ("Name", client_name),
            ("Email", client_email),
            ("Phone", client_phone or "Not provided"),
            ("Proposed times", _format_slots(preferred_slots)),
            ("Request ID", request_id),
        ]
    )
    return get_base_template(
        title=f"New consultation request from {client_name}",
        preview_text="A new consultation request needs review",
        content_sections=content,
        cta_url=f"{FRONTEND_URL}/admin/consultations/{request_id}",
        cta_label="Review Request",
    )


def consultation_confirmed_template(
    client_name: str,
    scheduled_date: str,
    scheduled_time: str,
    meeting_link: str,
    notes: Optional[str] = None,
) -> str:
    """Prospect: consultation confirmed with concrete slot and link"""
    content = _paragraphs(
        f"Hi {_e(client_name)},",
        "Your consultation is confirmed. We look forward to speaking with you.",
    ) + _detail_table(
        [
            ("Date", scheduled_date),
            ("Time", scheduled_time),
            ("Meeting link", meeting_link),
            ("Notes", notes),
        ]
    )
    return get_base_template(
        title="Your consultation is confirmed",
        preview_text=f"See you on {scheduled_date} at {scheduled_time}",
        content_sections=content,
        cta_url=meeting_link,
        cta_label="Join Meeting",
    )


def consultation_rejected_template(client_name: str, reason: str) -> str:
    """Prospect: request declined"""
    content = _paragraphs(
        f"Hi {_e(client_name)},",
        "Thank you for your interest. After reviewing your request we are unable to "
        "move forward with a consultation at this time.",
    ) + _detail_table([("Reason", reason)])
    return get_base_template(
        title="Update on your consultation request",
        preview_text="An update on your consultation request",
        content_sections=content,
    )


def consultation_reschedule_template(client_name: str, reason: str, resubmit_url: str) -> str:
    """Prospect: please propose new times"""
    content = _paragraphs(
        f"Hi {_e(client_name)},",
        "None of the times you proposed work for our team. Please submit up to three "
        "new time slots and we will confirm one.",
    ) + _detail_table([("Note from our team", reason)])
    return get_base_template(
        title="Please choose new consultation times",
        preview_text="We need new times for your consultation",
        content_sections=content,
        cta_url=resubmit_url,
        cta_label="Propose New Times",
    )


# ============================================================================
# PAYMENT AND REGISTRATION
# ============================================================================


def payment_verified_registration_template(
    client_name: str,
    payment_amount: Optional[float],
    payment_method: Optional[str],
    package_tier: Optional[str],
    registration_url: str,
    expires_at: str,
) -> str:
    """Prospect: payment confirmed, registration link"""
    amount = f"{payment_amount:,.2f}" if payment_amount is not None else None
    content = _paragraphs(
        f"Hi {_e(client_name)},",
        "We've confirmed your payment. Create your account to begin onboarding.",
    ) + _detail_table(
        [
            ("Amount", amount),
            ("Method", payment_method),
            ("Package", package_tier),
            ("Link expires", expires_at),
        ]
    )
    return get_base_template(
        title="Payment confirmed - create your account",
        preview_text="Your registration link is ready",
        content_sections=content,
        cta_url=registration_url,
        cta_label="Create Account",
    )


def registration_link_resent_template(client_name: str, registration_url: str, expires_at: str) -> str:
    """Prospect: existing registration link re-sent"""
    content = _paragraphs(
        f"Hi {_e(client_name)},",
        "Here is your registration link again. It can only be used once.",
    ) + _detail_table([("Link expires", expires_at)])
    return get_base_template(
        title="Your registration link",
        preview_text="Your registration link, re-sent",
        content_sections=content,
        cta_url=registration_url,
        cta_label="Create Account",
    )


def signup_invite_template(client_name: str, registration_url: str, expires_at: str) -> str:
    """Direct operator invite"""
    content = _paragraphs(
        f"Hi {_e(client_name)},",
        "You've been invited to create your client account. This invitation expires in 24 hours.",
    ) + _detail_table([("Link expires", expires_at)])
    return get_base_template(
        title="You're invited",
        preview_text="Create your client account",
        content_sections=content,
        cta_url=registration_url,
        cta_label="Accept Invitation",
    )


def client_welcome_template(client_name: str, dashboard_url: str) -> str:
    content = _paragraphs(
        f"Hi {_e(client_name)},",
        "Your account is ready. The next step is the onboarding questionnaire, which helps "
        "us understand your goals before we start applying on your behalf.",
    )
    return get_base_template(
        title="Welcome aboard",
        preview_text="Your account has been created",
        content_sections=content,
        cta_url=dashboard_url,
        cta_label="Start Onboarding",
    )


# ============================================================================
# ONBOARDING
# ============================================================================


def onboarding_received_template(client_name: str) -> str:
    content = _paragraphs(
        f"Hi {_e(client_name)},",
        "We received your onboarding questionnaire. Our team is reviewing it and will "
        "unlock your full dashboard once approved.",
    )
    return get_base_template(
        title="Onboarding received - under review",
        preview_text="Your onboarding is under review",
        content_sections=content,
    )


def onboarding_submitted_admin_template(client_name: str, client_email: str, client_id: str) -> str:
    content = _paragraphs(
        "A client submitted their onboarding questionnaire and is waiting for approval."
    ) + _detail_table([("Client", client_name), ("Email", client_email)])
    return get_base_template(
        title=f"Onboarding ready for review: {client_name}",
        preview_text="Onboarding awaiting approval",
        content_sections=content,
        cta_url=f"{FRONTEND_URL}/admin/clients/{client_id}",
        cta_label="Review Onboarding",
    )


def profile_unlocked_template(client_name: str, dashboard_url: str, notes: Optional[str] = None) -> str:
    content = _paragraphs(
        f"Hi {_e(client_name)},",
        "Your onboarding has been approved and your profile is unlocked. You now have full "
        "access to the application tracker.",
    ) + _detail_table([("Notes", notes)])
    return get_base_template(
        title="Your profile is unlocked",
        preview_text="Full dashboard access is now available",
        content_sections=content,
        cta_url=dashboard_url,
        cta_label="Open Dashboard",
    )


def onboarding_paused_template(client_name: str, reason: str) -> str:
    content = _paragraphs(
        f"Hi {_e(client_name)},",
        "Work on your account has been paused. Our team will reach out with next steps.",
    ) + _detail_table([("Reason", reason)])
    return get_base_template(
        title="Your onboarding is paused",
        preview_text="Your onboarding is paused",
        content_sections=content,
    )


def onboarding_rejected_template(client_name: str, reason: str, onboarding_url: str) -> str:
    content = _paragraphs(
        f"Hi {_e(client_name)},",
        "We need a few changes to your onboarding questionnaire before we can approve it. "
        "Please update your answers and submit again.",
    ) + _detail_table([("What to change", reason)])
    return get_base_template(
        title="Changes needed on your onboarding",
        preview_text="Please update your onboarding questionnaire",
        content_sections=content,
        cta_url=onboarding_url,
        cta_label="Update Answers",
    )


# ============================================================================
# APPLICATIONS
# ============================================================================

# Per-status copy; {title} and {company} are the only placeholders
STATUS_COPY: dict[str, dict[str, str]] = {
    "applied": {
        "subject": "New application: {title} at {company}",
        "headline": "Application submitted",
        "message": "Your application for {title} at {company} has been submitted.",
        "next_steps": "We'll monitor progress and keep you updated.",
    },
    "under_review": {
        "subject": "Your application is under review at {company}",
        "headline": "Application under review",
        "message": "{company} is reviewing your application for {title}.",
        "next_steps": "The hiring team is evaluating your qualifications. We'll update you as soon as we hear back.",
    },
    "interview_scheduled": {
        "subject": "Interview scheduled: {title} at {company}",
        "headline": "Interview scheduled!",
        "message": "You have an interview scheduled for {title} at {company}.",
        "next_steps": "Prepare well and reach out if you'd like help with interview preparation.",
    },
    "interview_completed": {
        "subject": "Interview completed: {title} at {company}",
        "headline": "Interview completed",
        "message": "Your interview for {title} at {company} has been completed.",
        "next_steps": "We're awaiting feedback from the hiring team.",
    },
    "offer_received": {
        "subject": "Great news: offer from {company}",
        "headline": "Job offer received!",
        "message": "You've received a job offer for {title} at {company}.",
        "next_steps": "Review the offer details carefully. We're here to help with negotiation.",
    },
    "offer_accepted": {
        "subject": "Congratulations on your new role at {company}",
        "headline": "Offer accepted",
        "message": "You've accepted the offer for {title} at {company}.",
        "next_steps": "Prepare for your new role. We're proud of your success!",
    },
    "rejected": {
        "subject": "Application update: {company}",
        "headline": "Application update",
        "message": "{company} has decided not to move forward with your application for {title}.",
        "next_steps": "Every application brings you closer to the right opportunity. We'll keep applying on your behalf.",
    },
    "withdrawn": {
        "subject": "Application withdrawn: {title} at {company}",
        "headline": "Application withdrawn",
        "message": "Your application for {title} at {company} has been withdrawn.",
        "next_steps": "We'll focus on your other active applications.",
    },
}


def application_status_copy(status: str, company: str, title: str) -> dict[str, str]:
    """Select the copy for a status; pure lookup, raises KeyError for unknown statuses"""
    copy = STATUS_COPY[status]
    return {key: value.format(company=company, title=title) for key, value in copy.items()}


def application_status_template(
    client_name: str,
    company: str,
    title: str,
    status: str,
    interview_date: Optional[str] = None,
    offer_amount: Optional[float] = None,
    dashboard_url: Optional[str] = None,
) -> str:
    copy = application_status_copy(status, company, title)
    content = _paragraphs(
        f"Hi {_e(client_name)},",
        _e(copy["message"]),
    ) + _detail_table(
        [
            ("Interview", interview_date if status == "interview_scheduled" else None),
            (
                "Offer",
                f"{offer_amount:,.2f}" if offer_amount is not None and status == "offer_received" else None,
            ),
        ]
    ) + _paragraphs(_e(copy["next_steps"]))
    return get_base_template(
        title=copy["headline"],
        preview_text=copy["message"],
        content_sections=content,
        cta_url=dashboard_url,
        cta_label="View Applications" if dashboard_url else None,
    )


# ============================================================================
# REGISTRY
# ============================================================================


def _application_subject(payload: dict) -> str:
    return application_status_copy(payload["status"], payload["company"], payload["title"])["subject"]


# event -> (subject builder, template function)
TEMPLATE_REGISTRY: dict[str, tuple[Callable[[dict], str], Callable[..., str]]] = {
    "consultation_received": (
        lambda p: "We received your consultation request",
        consultation_received_template,
    ),
    "new_consultation_request": (
        lambda p: f"New consultation request: {p['client_name']}",
        new_consultation_request_template,
    ),
    "consultation_confirmed": (
        lambda p: f"Consultation confirmed for {p['scheduled_date']} at {p['scheduled_time']}",
        consultation_confirmed_template,
    ),
    "consultation_rejected": (
        lambda p: "Update on your consultation request",
        consultation_rejected_template,
    ),
    "consultation_reschedule_requested": (
        lambda p: "Please choose new consultation times",
        consultation_reschedule_template,
    ),
    "payment_verified_registration": (
        lambda p: "Payment confirmed - create your account",
        payment_verified_registration_template,
    ),
    "registration_link_resent": (
        lambda p: "Your registration link",
        registration_link_resent_template,
    ),
    "signup_invite": (lambda p: "You're invited to create your account", signup_invite_template),
    "client_welcome": (lambda p: "Welcome aboard", client_welcome_template),
    "onboarding_received": (
        lambda p: "Onboarding received - under review",
        onboarding_received_template,
    ),
    "onboarding_submitted_admin": (
        lambda p: f"Onboarding ready for review: {p['client_name']}",
        onboarding_submitted_admin_template,
    ),
    "profile_unlocked": (lambda p: "Your profile is unlocked", profile_unlocked_template),
    "onboarding_paused": (lambda p: "Your onboarding is paused", onboarding_paused_template),
    "onboarding_rejected": (
        lambda p: "Changes needed on your onboarding",
        onboarding_rejected_template,
    ),
    "application_status_changed": (_application_subject, application_status_template),
}


def render_template(template_key: str, payload: dict) -> tuple[str, str]:
    """Render (subject, mjml) for a template key; raises KeyError for unknown keys"""
    subject_builder, template_fn = TEMPLATE_REGISTRY[template_key]
    # Payloads may carry extra keys for the in-app record
    accepted = inspect.signature(template_fn).parameters
    kwargs = {key: value for key, value in payload.items() if key in accepted}
    return subject_builder(payload), template_fn(**kwargs)
