"""
Notification Dispatcher
Single entry point for every workflow notification. Callers commit their
state change first and then await notify(); nothing raised while rendering,
sending or recording ever reaches the caller.
"""

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional

from fastapi import Request
from fastapi.encoders import jsonable_encoder
from sqlalchemy.orm import Session

from ..config import ADMIN_NOTIFICATION_EMAIL
from ..database import SessionLocal
from ..email_service import send_email
from ..email_templates import STATUS_COPY, render_template
from ..models import Notification

logger = logging.getLogger(__name__)

# (to, subject, mjml_content)
EmailSender = Callable[[str, str, str], Awaitable[Any]]


@dataclass
class Recipient:
    email: str
    name: str = ""
    # Set for registered clients; also records an in-app notification
    client_id: Optional[str] = None


def operations_recipient() -> Recipient:
    return Recipient(email=ADMIN_NOTIFICATION_EMAIL, name="Operations")


def in_app_message(event: str, subject: str, payload: dict) -> str:
    if event == "application_status_changed":
        copy = STATUS_COPY.get(payload.get("status"), {})
        if copy:
            return copy["message"].format(
                company=payload.get("company"), title=payload.get("title")
            )
    return subject


class NotificationDispatcher:
    """
    Renders one template per event and sends it through the email channel.

    Args:
        sender: coroutine taking (to, subject, mjml_content)
        session_factory: builds a Session for in-app records; None disables them
    """

    def __init__(
        self,
        sender: Optional[EmailSender] = None,
        session_factory: Optional[Callable[[], Session]] = SessionLocal,
    ):
        self._sender = sender or send_email
        self._session_factory = session_factory

    async def notify(self, event: str, recipient: Recipient, payload: dict) -> bool:
        """Best-effort single attempt; returns whether the email was handed off"""
        try:
            subject, mjml_content = render_template(event, payload)
        except Exception as e:
            logger.error(f"❌ Failed to render {event} notification for {recipient.email}: {e}")
            return False

        sent = False
        try:
            logger.info(f"📧 Sending {event} email to {recipient.email}")
            await self._sender(recipient.email, subject, mjml_content)
            sent = True
            logger.info(f"✅ {event} email sent successfully to {recipient.email}")
        except Exception as e:
            logger.error(f"❌ Failed to send {event} email to {recipient.email}: {e}")

        if recipient.client_id and self._session_factory is not None:
            self._record_in_app(event, recipient, subject, payload)

        return sent

    def _record_in_app(self, event: str, recipient: Recipient, subject: str, payload: dict) -> None:
        db = None
        try:
            db = self._session_factory()
            db.add(
                Notification(
                    client_id=recipient.client_id,
                    event=event,
                    title=subject,
                    message=in_app_message(event, subject, payload),
                    payload=jsonable_encoder(payload),
                )
            )
            db.commit()
        except Exception as e:
            if db is not None:
                db.rollback()
            logger.error(f"❌ Failed to record in-app {event} notification for {recipient.client_id}: {e}")
        finally:
            if db is not None:
                db.close()


default_dispatcher = NotificationDispatcher()


def get_notifier(request: Request) -> NotificationDispatcher:
    """Dependency injection for the notification dispatcher"""
    return getattr(request.app.state, "notifier", None) or default_dispatcher
