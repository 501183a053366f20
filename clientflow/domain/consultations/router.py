"""Consultation router - FastAPI endpoints for consultation requests"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ...auth import require_admin
from ...database import get_db
from ...models import Client
from ...rate_limiter import create_rate_limiter
from ...services.notification_service import NotificationDispatcher, get_notifier
from ...shared.validators import get_clock
from .schemas import (
    ConsultationActionResponse,
    ConsultationConfirm,
    ConsultationCreate,
    ConsultationDecision,
    ConsultationResponse,
)
from .service import ConsultationService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/consultations", tags=["Consultations"])

rate_limit_submissions = create_rate_limiter(
    limit=5, window_seconds=3600, key_prefix="consultation_submit"
)


def get_consultation_service(
    db: Session = Depends(get_db),
    notifier: NotificationDispatcher = Depends(get_notifier),
    clock=Depends(get_clock),
) -> ConsultationService:
    """Dependency injection for ConsultationService"""
    return ConsultationService(db, notifier, clock=clock)


# ============================================================================
# PUBLIC
# ============================================================================


@router.post("", response_model=ConsultationActionResponse, status_code=status.HTTP_201_CREATED)
async def submit_consultation(
    data: ConsultationCreate,
    service: ConsultationService = Depends(get_consultation_service),
    _: None = Depends(rate_limit_submissions),
):
    """Public consultation request with 1-3 proposed slots"""
    request = await service.submit(data)
    return ConsultationActionResponse(id=request.id, status=request.status)


# ============================================================================
# OPERATOR
# ============================================================================


@router.get("", response_model=list[ConsultationResponse])
async def list_consultations(
    status_filter: Optional[str] = Query(None, alias="status"),
    operator: Client = Depends(require_admin),
    service: ConsultationService = Depends(get_consultation_service),
):
    return [ConsultationResponse.from_model(r) for r in service.list_requests(status_filter)]


@router.get("/{request_id}", response_model=ConsultationResponse)
async def get_consultation(
    request_id: str,
    operator: Client = Depends(require_admin),
    service: ConsultationService = Depends(get_consultation_service),
):
    return ConsultationResponse.from_model(service.get(request_id))


@router.post("/{request_id}/review", response_model=ConsultationActionResponse)
async def start_review(
    request_id: str,
    operator: Client = Depends(require_admin),
    service: ConsultationService = Depends(get_consultation_service),
):
    request = service.start_review(request_id, operator)
    return ConsultationActionResponse(id=request.id, status=request.status)


@router.post("/{request_id}/confirm", response_model=ConsultationActionResponse)
async def confirm_consultation(
    request_id: str,
    data: ConsultationConfirm,
    operator: Client = Depends(require_admin),
    service: ConsultationService = Depends(get_consultation_service),
):
    """Pick one of the proposed slots and attach the meeting link"""
    request = await service.confirm(
        request_id, data.slotIndex, data.meetingLink, data.notes, operator
    )
    return ConsultationActionResponse(
        id=request.id,
        status=request.status,
        scheduledAt=request.scheduled_at,
        meetingLink=request.meeting_link,
    )


@router.post("/{request_id}/reject", response_model=ConsultationActionResponse)
async def reject_consultation(
    request_id: str,
    data: ConsultationDecision,
    operator: Client = Depends(require_admin),
    service: ConsultationService = Depends(get_consultation_service),
):
    request = await service.reject(request_id, data.reason, operator)
    return ConsultationActionResponse(id=request.id, status=request.status)


@router.post("/{request_id}/reschedule", response_model=ConsultationActionResponse)
async def reschedule_consultation(
    request_id: str,
    data: ConsultationDecision,
    operator: Client = Depends(require_admin),
    service: ConsultationService = Depends(get_consultation_service),
):
    """Ask the prospect to propose new times"""
    request = await service.reschedule(request_id, data.reason, operator)
    return ConsultationActionResponse(id=request.id, status=request.status)
