"""Onboarding router - FastAPI endpoints for the onboarding questionnaire"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import get_current_user, require_admin
from ...database import get_db
from ...exceptions import PermissionDeniedError, ValidationError
from ...models import Client
from ...services.notification_service import NotificationDispatcher, get_notifier
from ...shared.validators import get_clock
from .schemas import (
    OnboardingApprove,
    OnboardingDecision,
    OnboardingStatusResponse,
    OnboardingSubmit,
)
from .service import OnboardingService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/onboarding", tags=["Onboarding"])


def get_onboarding_service(
    db: Session = Depends(get_db),
    notifier: NotificationDispatcher = Depends(get_notifier),
    clock=Depends(get_clock),
) -> OnboardingService:
    """Dependency injection for OnboardingService"""
    return OnboardingService(db, notifier, clock=clock)


def resolve_target_client(user: Client, client_id) -> str:
    """Clients act on themselves; operators must name the client"""
    if user.role == "admin":
        if not client_id:
            raise ValidationError("clientId is required")
        return client_id
    if client_id and client_id != user.id:
        raise PermissionDeniedError()
    return user.id


@router.post("", response_model=OnboardingStatusResponse)
async def submit_onboarding(
    data: OnboardingSubmit,
    current_user: Client = Depends(get_current_user),
    service: OnboardingService = Depends(get_onboarding_service),
):
    """Submit or re-submit the questionnaire; always returns pending_approval"""
    client_id = resolve_target_client(current_user, data.clientId)
    record = await service.submit(client_id, data.answers)
    return OnboardingStatusResponse.from_model(record)


@router.get("/{client_id}", response_model=OnboardingStatusResponse)
async def get_onboarding(
    client_id: str,
    current_user: Client = Depends(get_current_user),
    service: OnboardingService = Depends(get_onboarding_service),
):
    resolve_target_client(current_user, client_id)
    return OnboardingStatusResponse.from_model(service.get(client_id))


# ============================================================================
# OPERATOR REVIEW
# ============================================================================


@router.post("/{client_id}/approve", response_model=OnboardingStatusResponse)
async def approve_onboarding(
    client_id: str,
    data: OnboardingApprove,
    operator: Client = Depends(require_admin),
    service: OnboardingService = Depends(get_onboarding_service),
):
    record = await service.approve(client_id, operator, data.notes)
    return OnboardingStatusResponse.from_model(record)


@router.post("/{client_id}/pause", response_model=OnboardingStatusResponse)
async def pause_onboarding(
    client_id: str,
    data: OnboardingDecision,
    operator: Client = Depends(require_admin),
    service: OnboardingService = Depends(get_onboarding_service),
):
    record = await service.pause(client_id, data.reason, operator)
    return OnboardingStatusResponse.from_model(record)


@router.post("/{client_id}/reject", response_model=OnboardingStatusResponse)
async def reject_onboarding(
    client_id: str,
    data: OnboardingDecision,
    operator: Client = Depends(require_admin),
    service: OnboardingService = Depends(get_onboarding_service),
):
    record = await service.reject(client_id, data.reason, operator)
    return OnboardingStatusResponse.from_model(record)
