"""Account service - login, operator bootstrap and soft deactivation"""

import logging
from datetime import datetime
from typing import Callable, Optional

from sqlalchemy.orm import Session

from ...database import commit_or_rollback
from ...exceptions import AuthenticationError, NotFoundError, PermissionDeniedError, ValidationError
from ...models import Client
from ...security_utils import (
    TokenIssuer,
    create_session_token,
    hash_password,
    mask_email,
    token_issuer,
    verify_password,
)
from ...shared.validators import utcnow
from .repository import AccountRepository
from .schemas import BootstrapAdmin

logger = logging.getLogger(__name__)


class AccountService:
    """Service layer for account business logic"""

    def __init__(
        self,
        db: Session,
        issuer: Optional[TokenIssuer] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.db = db
        self.issuer = issuer or token_issuer
        self.clock = clock
        self.repo = AccountRepository()

    def login(self, email: str, password: str) -> tuple[Client, str]:
        """Returns the account and a fresh session token"""
        user = self.repo.get_by_email(self.db, email)
        if not user or not verify_password(password, user.password_hash):
            logger.warning(f"⚠️ Failed login for {mask_email(email)}")
            raise AuthenticationError("Invalid email or password", code="INVALID_CREDENTIALS")

        if not user.is_active or user.status == "suspended":
            logger.warning(f"⚠️ Login attempt on deactivated account {user.id}")
            raise PermissionDeniedError("This account has been deactivated", code="ACCOUNT_SUSPENDED")

        user.last_login_at = self.clock()
        commit_or_rollback(self.db, "login")
        self.db.refresh(user)
        logger.info(f"🔑 {user.role} {user.id} logged in")
        return user, create_session_token(user, self.issuer)

    def deactivate(self, client_id: str, operator: Optional[Client] = None) -> Client:
        client = self.repo.get(self.db, client_id)
        if not client:
            raise NotFoundError("Client not found")
        if operator and operator.id == client.id:
            raise ValidationError("Operators cannot deactivate their own account")

        if self.repo.deactivate(self.db, client_id):
            commit_or_rollback(self.db, "client deactivation")
            logger.info(f"🚫 Client {client_id} deactivated by {operator.id if operator else 'system'}")
        self.db.refresh(client)
        return client

    def bootstrap_admin(self, email: str, password: str, full_name: str) -> Optional[Client]:
        """Create the configured operator account if it does not exist yet"""
        data = BootstrapAdmin(email=email, password=password, fullName=full_name)
        existing = self.repo.get_by_email(self.db, data.email)
        if existing:
            if existing.role != "admin":
                logger.warning(
                    f"⚠️ Bootstrap admin email {mask_email(data.email)} belongs to a client account; skipping"
                )
            return existing

        admin = self.repo.create(
            self.db,
            full_name=data.fullName,
            email=data.email,
            password_hash=hash_password(data.password),
            role="admin",
            status="active",
            is_active=True,
            onboarding_complete=True,
            profile_unlocked=True,
        )
        commit_or_rollback(self.db, "admin bootstrap")
        logger.info(f"👤 Bootstrap operator account created for {mask_email(data.email)}")
        return admin
