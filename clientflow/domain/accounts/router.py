"""Account router - login, operator invites and client administration"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import get_current_user, require_admin
from ...database import get_db
from ...models import Client
from ...rate_limiter import create_rate_limiter
from ...security_utils import TokenIssuer, get_token_issuer
from ...shared.validators import get_clock
from ..payments.router import get_invitation_service, to_response
from ..payments.schemas import InvitationResponse, InviteCreate
from ..payments.service import InvitationService
from .schemas import LoginRequest, LoginResponse, UserResponse
from .service import AccountService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])
clients_router = APIRouter(prefix="/clients", tags=["Clients"])

rate_limit_login = create_rate_limiter(limit=10, window_seconds=300, key_prefix="login")


def get_account_service(
    db: Session = Depends(get_db),
    issuer: TokenIssuer = Depends(get_token_issuer),
    clock=Depends(get_clock),
) -> AccountService:
    """Dependency injection for AccountService"""
    return AccountService(db, issuer, clock=clock)


@router.post("/login", response_model=LoginResponse)
async def login(
    data: LoginRequest,
    service: AccountService = Depends(get_account_service),
    _: None = Depends(rate_limit_login),
):
    user, token = service.login(data.email, data.password)
    return LoginResponse(token=token, user=UserResponse.from_model(user))


@router.get("/me", response_model=UserResponse)
async def me(current_user: Client = Depends(get_current_user)):
    return UserResponse.from_model(current_user)


@router.post("/invite", response_model=InvitationResponse)
async def invite_client(
    data: InviteCreate,
    operator: Client = Depends(require_admin),
    service: InvitationService = Depends(get_invitation_service),
):
    """Invite someone straight to registration, skipping the consultation"""
    result = await service.invite(data.email, data.fullName, operator)
    return to_response(result)


# ============================================================================
# CLIENT ADMINISTRATION
# ============================================================================


@clients_router.post("/{client_id}/deactivate", response_model=UserResponse)
async def deactivate_client(
    client_id: str,
    operator: Client = Depends(require_admin),
    service: AccountService = Depends(get_account_service),
):
    return UserResponse.from_model(service.deactivate(client_id, operator))
