import logging

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from .database import get_db
from .exceptions import AuthenticationError, PermissionDeniedError, TokenError
from .models import Client
from .security_utils import INTENT_SESSION, TokenIssuer, get_token_issuer

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db),
    issuer: TokenIssuer = Depends(get_token_issuer),
) -> Client:
    """Resolve the account behind a session token"""

    if not credentials:
        logger.warning("⚠️ No credentials provided")
        raise AuthenticationError(
            "Not authenticated. Please provide a valid Bearer token in the Authorization header."
        )

    try:
        claims = issuer.verify(credentials.credentials, INTENT_SESSION)
    except TokenError as e:
        logger.warning(f"⚠️ Session token rejected: {e.code}")
        raise AuthenticationError("Invalid or expired session", code=e.code) from e

    user = db.query(Client).filter(Client.id == claims["sub"]).first()
    if not user:
        logger.warning(f"⚠️ Session token for unknown account {claims['sub']}")
        raise AuthenticationError("Account not found")

    if not user.is_active or user.status == "suspended":
        logger.warning(f"⚠️ Suspended account {user.id} attempted access")
        raise PermissionDeniedError("This account has been deactivated", code="ACCOUNT_SUSPENDED")

    logger.debug(f"✅ User authenticated: {user.id}")
    return user


async def require_admin(user: Client = Depends(get_current_user)) -> Client:
    """Operator-only routes"""
    if user.role != "admin":
        logger.warning(f"⚠️ Non-admin {user.id} attempted an operator action")
        raise PermissionDeniedError()
    return user


async def require_client(user: Client = Depends(get_current_user)) -> Client:
    """Client-only routes"""
    if user.role != "client":
        raise PermissionDeniedError("This action is only available to client accounts")
    return user
