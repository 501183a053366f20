"""Application service - job application tracking and status notifications"""

import logging
from datetime import datetime
from typing import Callable, Optional

from sqlalchemy.orm import Session

from ...config import FRONTEND_URL
from ...database import commit_or_rollback
from ...exceptions import ApplicationClosed, ConflictError, NotFoundError, ValidationError
from ...models import Application, Client
from ...services.notification_service import NotificationDispatcher, Recipient
from ...services.status_automation import (
    APPLICATION_STATUSES,
    is_application_closed,
    validate_status_transition,
)
from ...shared.validators import utcnow
from .repository import ApplicationRepository
from .schemas import ApplicationCreate, ApplicationDetails

logger = logging.getLogger(__name__)

INTERVIEW_STATUSES = ("interview_scheduled", "interview_completed")
OFFER_STATUSES = ("offer_received", "offer_accepted")


class ApplicationService:
    """Service layer for application business logic"""

    def __init__(
        self,
        db: Session,
        notifier: NotificationDispatcher,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.db = db
        self.notifier = notifier
        self.clock = clock
        self.repo = ApplicationRepository()

    def get(self, application_id: str) -> Application:
        application = self.repo.get(self.db, application_id)
        if not application:
            raise NotFoundError("Application not found")
        return application

    def list_for_client(self, client_id: str) -> list[Application]:
        return self.repo.list_for_client(self.db, client_id)

    def stats(self, client_id: str) -> dict:
        """Counts per status plus response and offer rates (percent)"""
        by_status = self.repo.count_by_status(self.db, client_id)
        total = sum(by_status.values())
        unanswered = by_status.get("applied", 0) + by_status.get("withdrawn", 0)
        offers = sum(by_status.get(s, 0) for s in OFFER_STATUSES)

        return {
            "total": total,
            "byStatus": {status: by_status.get(status, 0) for status in APPLICATION_STATUSES},
            "active": sum(c for s, c in by_status.items() if not is_application_closed(s)),
            "interviews": sum(by_status.get(s, 0) for s in INTERVIEW_STATUSES),
            "offers": offers,
            "responseRate": round((total - unanswered) / total * 100, 1) if total else 0.0,
            "offerRate": round(offers / total * 100, 1) if total else 0.0,
        }

    async def _notify_client(self, application: Application) -> None:
        client = application.client
        await self.notifier.notify(
            "application_status_changed",
            Recipient(email=client.email, name=client.full_name, client_id=client.id),
            {
                "client_name": client.full_name,
                "company": application.company,
                "title": application.title,
                "status": application.status,
                "interview_date": (
                    application.interview_date.strftime("%Y-%m-%d %H:%M")
                    if application.interview_date
                    else None
                ),
                "offer_amount": application.offer_amount,
                "dashboard_url": f"{FRONTEND_URL}/dashboard/applications",
                "application_id": application.id,
            },
        )

    async def create(self, data: ApplicationCreate, operator: Optional[Client] = None) -> Application:
        client = self.repo.get_client(self.db, data.clientId)
        if not client or client.role != "client":
            raise NotFoundError("Client not found")

        now = self.clock()
        application = self.repo.create(
            self.db,
            client_id=client.id,
            company=data.company,
            title=data.title,
            job_url=data.jobUrl,
            notes=data.notes,
            status="applied",
            applied_at=data.appliedAt or now,
            status_updated_at=now,
            created_by=operator.id if operator else None,
        )
        commit_or_rollback(self.db, "application create")
        self.db.refresh(application)
        logger.info(f"✅ Application {application.id} created for client {client.id}: {data.title} at {data.company}")

        await self._notify_client(application)
        return application

    async def update_status(
        self,
        application_id: str,
        new_status: str,
        details: Optional[ApplicationDetails] = None,
        operator: Optional[Client] = None,
    ) -> Application:
        details = details or ApplicationDetails()
        application = self.get(application_id)
        current = application.status

        if new_status not in APPLICATION_STATUSES:
            raise ValidationError(f"Unknown application status: {new_status}", code="INVALID_STATUS")

        if is_application_closed(current):
            logger.warning(f"⚠️ Update refused, application {application.id} is closed ({current})")
            raise ApplicationClosed(extra={"status": current})

        if not validate_status_transition(current, new_status):
            logger.warning(f"⚠️ Invalid transition for application {application.id}: {current} → {new_status}")
            raise ConflictError(
                f"Cannot move an application from {current} to {new_status}",
                code="INVALID_TRANSITION",
            )

        now = self.clock()
        values = {"status": new_status, "status_updated_at": now}
        if details.interviewDate is not None:
            values["interview_date"] = details.interviewDate
        if details.interviewType is not None:
            values["interview_type"] = details.interviewType
        if details.offerAmount is not None:
            values["offer_amount"] = details.offerAmount
        if details.notes is not None:
            values["notes"] = details.notes
        if details.adminNotes is not None:
            values["admin_notes"] = details.adminNotes
        if is_application_closed(new_status):
            values["closed_at"] = now

        rows = self.repo.transition(self.db, application.id, current, values)
        if rows == 0:
            self.db.rollback()
            latest = self.get(application_id)
            if is_application_closed(latest.status):
                raise ApplicationClosed(extra={"status": latest.status})
            raise ConflictError("This application was updated by someone else; reload and try again")

        commit_or_rollback(self.db, "application status update")
        application = self.get(application_id)
        self.db.refresh(application)
        logger.info(f"📊 Application {application.id} transitioned: {current} → {new_status}")

        await self._notify_client(application)
        return application
