"""Payment router - operator payment verification"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import require_admin
from ...database import get_db
from ...models import Client
from ...security_utils import TokenIssuer, get_token_issuer
from ...services.notification_service import NotificationDispatcher, get_notifier
from .schemas import InvitationResponse, PaymentVerify
from .service import InvitationService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/payments", tags=["Payments"])


def get_invitation_service(
    db: Session = Depends(get_db),
    notifier: NotificationDispatcher = Depends(get_notifier),
    issuer: TokenIssuer = Depends(get_token_issuer),
) -> InvitationService:
    """Dependency injection for InvitationService"""
    return InvitationService(db, notifier, issuer)


def to_response(result) -> InvitationResponse:
    return InvitationResponse(
        registrationLink=result.registration_link,
        expiresAt=result.expires_at,
        resent=result.resent,
        message=result.message,
    )


@router.post("/verify", response_model=InvitationResponse)
async def verify_payment(
    data: PaymentVerify,
    operator: Client = Depends(require_admin),
    service: InvitationService = Depends(get_invitation_service),
):
    """
    Record a manually verified payment and send the registration invitation.
    Repeated calls while the link is live re-send it instead of minting another.
    """
    result = await service.verify_and_invite(data, operator)
    return to_response(result)
