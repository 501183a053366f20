"""Application router - FastAPI endpoints for job application tracking"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ...auth import get_current_user, require_admin
from ...database import get_db
from ...exceptions import PermissionDeniedError, ValidationError
from ...models import Client
from ...services.notification_service import NotificationDispatcher, get_notifier
from ...shared.validators import get_clock
from .schemas import (
    ApplicationCreate,
    ApplicationResponse,
    ApplicationStatsResponse,
    ApplicationStatusUpdate,
)
from .service import ApplicationService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/applications", tags=["Applications"])


def get_application_service(
    db: Session = Depends(get_db),
    notifier: NotificationDispatcher = Depends(get_notifier),
    clock=Depends(get_clock),
) -> ApplicationService:
    """Dependency injection for ApplicationService"""
    return ApplicationService(db, notifier, clock=clock)


def scope_client_id(user: Client, client_id: Optional[str]) -> str:
    """Clients only ever see their own applications"""
    if user.role == "admin":
        if not client_id:
            raise ValidationError("clientId query parameter is required")
        return client_id
    if client_id and client_id != user.id:
        raise PermissionDeniedError()
    return user.id


# ============================================================================
# CLIENT DASHBOARD
# ============================================================================


@router.get("", response_model=list[ApplicationResponse])
async def list_applications(
    client_id: Optional[str] = Query(None, alias="clientId"),
    current_user: Client = Depends(get_current_user),
    service: ApplicationService = Depends(get_application_service),
):
    target = scope_client_id(current_user, client_id)
    return [ApplicationResponse.from_model(a) for a in service.list_for_client(target)]


@router.get("/stats", response_model=ApplicationStatsResponse)
async def application_stats(
    client_id: Optional[str] = Query(None, alias="clientId"),
    current_user: Client = Depends(get_current_user),
    service: ApplicationService = Depends(get_application_service),
):
    target = scope_client_id(current_user, client_id)
    return ApplicationStatsResponse(**service.stats(target))


@router.get("/{application_id}", response_model=ApplicationResponse)
async def get_application(
    application_id: str,
    current_user: Client = Depends(get_current_user),
    service: ApplicationService = Depends(get_application_service),
):
    application = service.get(application_id)
    scope_client_id(current_user, application.client_id)
    return ApplicationResponse.from_model(application)


# ============================================================================
# OPERATOR
# ============================================================================


@router.post("", response_model=ApplicationResponse, status_code=status.HTTP_201_CREATED)
async def create_application(
    data: ApplicationCreate,
    operator: Client = Depends(require_admin),
    service: ApplicationService = Depends(get_application_service),
):
    application = await service.create(data, operator)
    return ApplicationResponse.from_model(application)


@router.patch("/{application_id}", response_model=ApplicationResponse)
async def update_application_status(
    application_id: str,
    data: ApplicationStatusUpdate,
    operator: Client = Depends(require_admin),
    service: ApplicationService = Depends(get_application_service),
):
    """Move an application along its pipeline; closed applications answer 409"""
    application = await service.update_status(application_id, data.newStatus, data.details, operator)
    return ApplicationResponse.from_model(application)
