"""Registration router - public endpoints behind the registration link"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...database import get_db
from ...rate_limiter import create_rate_limiter
from ...security_utils import TokenIssuer, get_token_issuer
from ...services.notification_service import NotificationDispatcher, get_notifier
from ..payments.router import get_invitation_service, to_response
from ..payments.schemas import InvitationResponse, ResendRequest
from ..payments.service import InvitationService
from .schemas import RegistrationComplete, RegistrationResponse, TokenValidationResponse
from .service import RegistrationService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/register", tags=["Registration"])

rate_limit_registration = create_rate_limiter(limit=10, window_seconds=3600, key_prefix="register")
rate_limit_resend = create_rate_limiter(limit=3, window_seconds=3600, key_prefix="register_resend")


def get_registration_service(
    db: Session = Depends(get_db),
    notifier: NotificationDispatcher = Depends(get_notifier),
    issuer: TokenIssuer = Depends(get_token_issuer),
) -> RegistrationService:
    """Dependency injection for RegistrationService"""
    return RegistrationService(db, notifier, issuer)


@router.get("/validate/{token}", response_model=TokenValidationResponse)
async def validate_registration_token(
    token: str,
    service: RegistrationService = Depends(get_registration_service),
):
    """Check a link before showing the registration form"""
    row = service.validate(token)
    return TokenValidationResponse(
        valid=True, email=row.email, name=row.full_name, expiresAt=row.expires_at
    )


@router.post("/complete", response_model=RegistrationResponse)
async def complete_registration(
    data: RegistrationComplete,
    service: RegistrationService = Depends(get_registration_service),
    _: None = Depends(rate_limit_registration),
):
    result = await service.complete(data.token, data.password, data.profile)
    return RegistrationResponse(clientId=result.client.id, sessionToken=result.session_token)


@router.post("/resend", response_model=InvitationResponse)
async def resend_registration_link(
    data: ResendRequest,
    service: InvitationService = Depends(get_invitation_service),
    _: None = Depends(rate_limit_resend),
):
    result = await service.resend(data.email)
    return to_response(result)
