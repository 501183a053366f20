"""Onboarding service - questionnaire submission and operator review"""

import logging
from datetime import datetime
from typing import Any, Callable, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...config import FRONTEND_URL
from ...database import commit_or_rollback
from ...exceptions import ConflictError, NotFoundError, ValidationError
from ...models import Client, OnboardingRecord
from ...services.notification_service import (
    NotificationDispatcher,
    Recipient,
    operations_recipient,
)
from ...services.status_automation import ONBOARDING_ACTION_SOURCES
from ...shared.validators import utcnow
from .repository import OnboardingRepository

logger = logging.getLogger(__name__)


class OnboardingService:
    """Service layer for onboarding business logic"""

    def __init__(
        self,
        db: Session,
        notifier: NotificationDispatcher,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.db = db
        self.notifier = notifier
        self.clock = clock
        self.repo = OnboardingRepository()

    def _get_client(self, client_id: str) -> Client:
        client = self.repo.get_client(self.db, client_id)
        if not client:
            raise NotFoundError("Client not found")
        return client

    def _require_not_suspended(self, client: Client) -> None:
        if client.status == "suspended":
            logger.warning(f"⚠️ Onboarding change refused for suspended client {client.id}")
            raise ConflictError("This client account is suspended")

    def _update_client(self, client_id: str, values: dict) -> None:
        rows = self.repo.update_client(self.db, client_id, values)
        if rows == 0:
            self.db.rollback()
            raise ConflictError("This client account is suspended")

    def get(self, client_id: str) -> OnboardingRecord:
        record = self.repo.get_by_client(self.db, client_id)
        if not record:
            raise NotFoundError("No onboarding submitted for this client")
        return record

    async def submit(self, client_id: str, answers: dict[str, Any]) -> OnboardingRecord:
        """Upsert; every (re-)submission goes back to pending_approval"""
        client = self._get_client(client_id)
        if client.role != "client":
            raise ValidationError("Only client accounts complete onboarding")
        self._require_not_suspended(client)
        if not answers:
            raise ValidationError("Onboarding answers are required")

        now = self.clock()
        review_reset = {
            "answers": answers,
            "execution_status": "pending_approval",
            "submitted_at": now,
            "approved_by": None,
            "approved_at": None,
            "review_notes": None,
        }

        try:
            record = self.repo.get_by_client(self.db, client_id)
            if record:
                for key, value in review_reset.items():
                    setattr(record, key, value)
            else:
                record = self.repo.create(self.db, client_id=client_id, **review_reset)

            self._update_client(
                client_id,
                {"onboarding_complete": True, "status": "onboarding", "profile_unlocked": False},
            )
            commit_or_rollback(self.db, "onboarding submission")
        except IntegrityError as e:
            self.db.rollback()
            raise ConflictError("Onboarding was submitted concurrently; please retry") from e

        self.db.refresh(record)
        self.db.refresh(client)
        logger.info(f"📝 Onboarding submitted for client {client_id}: pending_approval")

        await self.notifier.notify(
            "onboarding_received",
            Recipient(email=client.email, name=client.full_name, client_id=client.id),
            {"client_name": client.full_name},
        )
        await self.notifier.notify(
            "onboarding_submitted_admin",
            operations_recipient(),
            {"client_name": client.full_name, "client_email": client.email, "client_id": client.id},
        )
        return record

    def _transition(self, client_id: str, action: str, new_status: str, values: dict) -> None:
        record = self.get(client_id)
        sources = ONBOARDING_ACTION_SOURCES[action]
        if record.execution_status not in sources:
            logger.warning(
                f"⚠️ Cannot {action} onboarding for client {client_id} in status {record.execution_status}"
            )
            raise ConflictError(f"Cannot {action} onboarding that is {record.execution_status}")

        rows = self.repo.transition(
            self.db, client_id, sources, {**values, "execution_status": new_status}
        )
        if rows == 0:
            self.db.rollback()
            raise ConflictError("This onboarding was updated by someone else; reload and try again")

    async def approve(
        self, client_id: str, operator: Optional[Client] = None, notes: Optional[str] = None
    ) -> OnboardingRecord:
        client = self._get_client(client_id)
        self._require_not_suspended(client)
        now = self.clock()
        operator_id = operator.id if operator else None

        self._transition(
            client_id,
            "approve",
            "active",
            {"approved_by": operator_id, "approved_at": now, "review_notes": notes},
        )
        self._update_client(
            client_id,
            {
                "profile_unlocked": True,
                "profile_unlocked_at": now,
                "profile_unlocked_by": operator_id,
                "status": "active",
            },
        )
        commit_or_rollback(self.db, "onboarding approval")
        logger.info(f"🔓 Onboarding approved for client {client_id}; profile unlocked")

        self.db.refresh(client)
        await self.notifier.notify(
            "profile_unlocked",
            Recipient(email=client.email, name=client.full_name, client_id=client.id),
            {
                "client_name": client.full_name,
                "dashboard_url": f"{FRONTEND_URL}/dashboard",
                "notes": notes,
            },
        )
        return self.get(client_id)

    async def pause(
        self, client_id: str, reason: str, operator: Optional[Client] = None
    ) -> OnboardingRecord:
        """Stop work on an active client and lock their profile again"""
        client = self._get_client(client_id)

        self._transition(client_id, "pause", "paused", {"review_notes": reason})
        self.repo.update_client(self.db, client_id, {"profile_unlocked": False})
        commit_or_rollback(self.db, "onboarding pause")
        logger.info(f"⏸️ Onboarding paused for client {client_id}")

        self.db.refresh(client)
        await self.notifier.notify(
            "onboarding_paused",
            Recipient(email=client.email, name=client.full_name, client_id=client.id),
            {"client_name": client.full_name, "reason": reason},
        )
        return self.get(client_id)

    async def reject(
        self, client_id: str, reason: str, operator: Optional[Client] = None
    ) -> OnboardingRecord:
        """Send a submission back; the record and answers stay for the next round"""
        client = self._get_client(client_id)

        self._transition(client_id, "reject", "paused", {"review_notes": reason})
        commit_or_rollback(self.db, "onboarding rejection")
        logger.info(f"↩️ Onboarding for client {client_id} sent back for changes")

        await self.notifier.notify(
            "onboarding_rejected",
            Recipient(email=client.email, name=client.full_name, client_id=client.id),
            {
                "client_name": client.full_name,
                "reason": reason,
                "onboarding_url": f"{FRONTEND_URL}/onboarding",
            },
        )
        return self.get(client_id)
