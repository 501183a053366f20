"""Consultation service - Business logic for prospect consultation requests"""

import logging
from datetime import datetime
from typing import Callable, Optional

from sqlalchemy.orm import Session

from ...config import FRONTEND_URL
from ...database import commit_or_rollback
from ...exceptions import ConflictError, NotFoundError, ValidationError
from ...models import Client, ConsultationRequest
from ...services.notification_service import (
    NotificationDispatcher,
    Recipient,
    operations_recipient,
)
from ...services.status_automation import (
    CONSULTATION_STATUSES,
    CONSULTATION_UNRESOLVED,
    allowed_consultation_sources,
)
from ...shared.validators import utcnow, validate_slot
from .repository import ConsultationRepository
from .schemas import ConsultationCreate, SlotIn

logger = logging.getLogger(__name__)

MAX_SLOTS = 3


class ConsultationService:
    """Service layer for consultation business logic"""

    def __init__(
        self,
        db: Session,
        notifier: NotificationDispatcher,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.db = db
        self.notifier = notifier
        self.clock = clock
        self.repo = ConsultationRepository()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get(self, request_id: str) -> ConsultationRequest:
        request = self.repo.get(self.db, request_id)
        if not request:
            raise NotFoundError("Consultation request not found")
        return request

    def list_requests(self, status: Optional[str] = None) -> list[ConsultationRequest]:
        if status and status not in CONSULTATION_STATUSES:
            raise ValidationError(f"Unknown consultation status: {status}")
        return self.repo.list_requests(self.db, status)

    # ------------------------------------------------------------------
    # Submission
    # ------------------------------------------------------------------

    def _validate_slots(self, slots: list[SlotIn]) -> list[dict]:
        """1-3 distinct, future-dated slots, normalized to {date, time}"""
        if not slots or len(slots) > MAX_SLOTS:
            raise ValidationError(
                f"Please propose between 1 and {MAX_SLOTS} time slots", code="INVALID_SLOTS"
            )

        now = self.clock()
        parsed = []
        for slot in slots:
            try:
                when = validate_slot(slot.date, slot.time)
            except ValueError as e:
                raise ValidationError(str(e), code="INVALID_SLOTS") from e
            if when <= now:
                raise ValidationError(
                    f"Proposed time {slot.date} {slot.time} is in the past", code="INVALID_SLOTS"
                )
            if when in parsed:
                raise ValidationError("Proposed time slots must be distinct", code="INVALID_SLOTS")
            parsed.append(when)

        return [{"date": when.strftime("%Y-%m-%d"), "time": when.strftime("%H:%M")} for when in parsed]

    async def submit(self, data: ConsultationCreate) -> ConsultationRequest:
        """Create a pending request, or reopen a rescheduled one with the new slots"""
        slots = self._validate_slots(data.slots)
        email = data.email

        open_request = self.repo.get_latest_for_email(self.db, email, CONSULTATION_UNRESOLVED)
        if open_request:
            logger.warning(f"⚠️ Duplicate consultation request for {email} ({open_request.id})")
            raise ConflictError(
                "A consultation request for this email is already awaiting review",
                code="DUPLICATE_REQUEST",
            )

        details = {
            "full_name": data.fullName,
            "phone": data.phone,
            "role_targets": data.roleTargets,
            "message": data.message,
            "preferred_slots": slots,
        }

        rescheduled = self.repo.get_latest_for_email(self.db, email, ("rescheduled",))
        if rescheduled:
            rows = self.repo.transition(
                self.db,
                rescheduled.id,
                allowed_consultation_sources("pending"),
                {
                    **details,
                    "status": "pending",
                    "selected_slot_index": None,
                    "scheduled_at": None,
                    "meeting_link": None,
                },
            )
            if rows == 0:
                self.db.rollback()
                raise ConflictError("This consultation request changed while you were resubmitting")
            commit_or_rollback(self.db, "consultation resubmission")
            request = self.repo.get(self.db, rescheduled.id)
            self.db.refresh(request)
            logger.info(f"🔁 Consultation {request.id} reopened: rescheduled → pending")
        else:
            request = self.repo.create(self.db, email=email, status="pending", **details)
            commit_or_rollback(self.db, "consultation submission")
            self.db.refresh(request)
            logger.info(f"✅ Consultation {request.id} submitted for {email}")

        await self.notifier.notify(
            "consultation_received",
            Recipient(email=request.email, name=request.full_name),
            {"client_name": request.full_name, "preferred_slots": request.preferred_slots},
        )
        await self.notifier.notify(
            "new_consultation_request",
            operations_recipient(),
            {
                "client_name": request.full_name,
                "client_email": request.email,
                "client_phone": request.phone,
                "preferred_slots": request.preferred_slots,
                "request_id": request.id,
            },
        )
        return request

    # ------------------------------------------------------------------
    # Operator actions
    # ------------------------------------------------------------------

    def _transition(self, request: ConsultationRequest, new_status: str, values: dict) -> ConsultationRequest:
        sources = allowed_consultation_sources(new_status)
        rows = self.repo.transition(self.db, request.id, sources, {**values, "status": new_status})
        if rows == 0:
            self.db.rollback()
            logger.warning(f"⚠️ Concurrent update on consultation {request.id}; {new_status} not applied")
            raise ConflictError("This consultation was updated by someone else; reload and try again")

        commit_or_rollback(self.db, f"consultation {new_status}")
        request = self.repo.get(self.db, request.id)
        self.db.refresh(request)
        return request

    def _require_status(self, request: ConsultationRequest, new_status: str, action: str) -> None:
        if request.status not in allowed_consultation_sources(new_status):
            logger.warning(f"⚠️ Cannot {action} consultation {request.id} in status {request.status}")
            raise ConflictError(f"Cannot {action} a consultation that is {request.status}")

    def start_review(self, request_id: str, operator: Optional[Client] = None) -> ConsultationRequest:
        request = self.get(request_id)
        self._require_status(request, "under_review", "review")
        request = self._transition(
            request, "under_review", {"processed_by": operator.id if operator else None}
        )
        logger.info(f"🔍 Consultation {request.id} transitioned: pending → under_review")
        return request

    async def confirm(
        self,
        request_id: str,
        slot_index: int,
        meeting_link: str,
        notes: Optional[str] = None,
        operator: Optional[Client] = None,
    ) -> ConsultationRequest:
        request = self.get(request_id)
        self._require_status(request, "confirmed", "confirm")

        slots = request.preferred_slots or []
        if slot_index < 0 or slot_index >= len(slots):
            raise ValidationError(
                f"Slot index must be between 0 and {len(slots) - 1}", code="INVALID_SLOT_INDEX"
            )
        chosen = slots[slot_index]
        scheduled_at = validate_slot(chosen["date"], chosen["time"])

        values = {
            "selected_slot_index": slot_index,
            "scheduled_at": scheduled_at,
            "meeting_link": meeting_link,
            "processed_by": operator.id if operator else None,
            "processed_at": self.clock(),
        }
        if notes:
            values["admin_notes"] = notes

        request = self._transition(request, "confirmed", values)
        logger.info(f"✅ Consultation {request.id} confirmed for {scheduled_at.isoformat()}")

        await self.notifier.notify(
            "consultation_confirmed",
            Recipient(email=request.email, name=request.full_name),
            {
                "client_name": request.full_name,
                "scheduled_date": chosen["date"],
                "scheduled_time": chosen["time"],
                "meeting_link": meeting_link,
                "notes": notes,
            },
        )
        return request

    async def reject(
        self, request_id: str, reason: str, operator: Optional[Client] = None
    ) -> ConsultationRequest:
        request = self.get(request_id)
        self._require_status(request, "rejected", "reject")

        request = self._transition(
            request,
            "rejected",
            {
                "admin_notes": reason,
                "selected_slot_index": None,
                "scheduled_at": None,
                "meeting_link": None,
                "processed_by": operator.id if operator else None,
                "processed_at": self.clock(),
            },
        )
        logger.info(f"❌ Consultation {request.id} rejected")

        await self.notifier.notify(
            "consultation_rejected",
            Recipient(email=request.email, name=request.full_name),
            {"client_name": request.full_name, "reason": reason},
        )
        return request

    async def reschedule(
        self, request_id: str, reason: str, operator: Optional[Client] = None
    ) -> ConsultationRequest:
        """Ask the prospect for new slots; their next submit reopens this request"""
        request = self.get(request_id)
        self._require_status(request, "rescheduled", "reschedule")

        request = self._transition(
            request,
            "rescheduled",
            {
                "admin_notes": reason,
                "selected_slot_index": None,
                "scheduled_at": None,
                "meeting_link": None,
                "processed_by": operator.id if operator else None,
                "processed_at": self.clock(),
            },
        )
        logger.info(f"📅 Consultation {request.id} marked for rescheduling")

        await self.notifier.notify(
            "consultation_reschedule_requested",
            Recipient(email=request.email, name=request.full_name),
            {
                "client_name": request.full_name,
                "reason": reason,
                "resubmit_url": f"{FRONTEND_URL}/consultation",
            },
        )
        return request
