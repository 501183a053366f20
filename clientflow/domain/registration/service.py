"""Registration service - turns a registration token into a client account"""

import logging
from dataclasses import dataclass
from typing import Any, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...config import FRONTEND_URL
from ...database import commit_or_rollback
from ...exceptions import (
    EmailAlreadyRegistered,
    InvalidToken,
    TokenAlreadyUsed,
    TokenExpired,
    ValidationError,
)
from ...models import Client, RegistrationToken
from ...security_utils import (
    INTENT_REGISTRATION,
    TokenIssuer,
    check_password_strength,
    create_session_token,
    hash_password,
    mask_email,
    token_issuer,
)
from ...services.notification_service import NotificationDispatcher, Recipient
from ..payments.repository import RegistrationTokenRepository
from .schemas import RegistrationProfile

logger = logging.getLogger(__name__)


@dataclass
class RegistrationResult:
    client: Client
    session_token: str


class RegistrationService:
    """Service layer for registration completion"""

    def __init__(
        self,
        db: Session,
        notifier: NotificationDispatcher,
        issuer: Optional[TokenIssuer] = None,
    ):
        self.db = db
        self.notifier = notifier
        self.issuer = issuer or token_issuer
        self.repo = RegistrationTokenRepository()

    def _resolve(self, token: str) -> tuple[dict[str, Any], RegistrationToken]:
        """
        Verify the signature and load the backing row.

        A consumed token reports TokenAlreadyUsed even once it has also
        expired, so a burnt link always reads "already used".
        """
        expired: Optional[TokenExpired] = None
        try:
            claims = self.issuer.verify(token, INTENT_REGISTRATION)
        except TokenExpired as e:
            claims, expired = e.claims, e

        row = self.repo.get_by_jti(self.db, claims["jti"])
        if not row or row.email != claims["sub"]:
            logger.warning(f"⚠️ Registration token {claims['jti']} has no backing record")
            raise InvalidToken()

        if row.consumed:
            logger.warning(f"⚠️ Replay of consumed registration token {row.id}")
            raise TokenAlreadyUsed()

        if expired is not None:
            logger.info(f"⌛ Registration token {row.id} expired at {row.expires_at}")
            raise expired

        return claims, row

    def validate(self, token: str) -> RegistrationToken:
        """Read-only check used by the registration page"""
        _, row = self._resolve(token)
        return row

    async def complete(
        self, token: str, password: str, profile: Optional[RegistrationProfile] = None
    ) -> RegistrationResult:
        profile = profile or RegistrationProfile()
        _, row = self._resolve(token)
        email = row.email

        strength = check_password_strength(password)
        if not strength["is_valid"]:
            raise ValidationError(
                "Password is too weak", code="WEAK_PASSWORD", extra={"feedback": strength["feedback"]}
            )

        # Race guard; the unique index on email is the final word
        if self.repo.client_exists(self.db, email):
            logger.warning(f"⚠️ Registration refused, {mask_email(email)} already has an account")
            raise EmailAlreadyRegistered()

        package_tier = row.consultation.package_tier if row.consultation else None
        client = Client(
            full_name=profile.fullName or row.full_name or email,
            email=email,
            password_hash=hash_password(password),
            role="client",
            status="active",
            is_active=True,
            onboarding_complete=False,
            profile_unlocked=False,
            phone=profile.phone,
            linkedin_url=profile.linkedinUrl,
            resume_url=profile.resumeUrl,
            current_job=profile.currentJob,
            target_role=profile.targetRole,
            country=profile.country,
            location=profile.location,
            years_of_experience=profile.yearsOfExperience,
            package_tier=package_tier,
            consultation_id=row.consultation_id,
        )

        # Client insert and token consumption commit together or not at all
        try:
            self.db.add(client)
            self.db.flush()
            consumed = self.repo.consume(self.db, row.id, self.issuer.clock())
            if consumed == 0:
                self.db.rollback()
                logger.warning(f"⚠️ Registration token {row.id} consumed concurrently")
                raise TokenAlreadyUsed()
            commit_or_rollback(self.db, "registration")
        except IntegrityError as e:
            self.db.rollback()
            logger.warning(f"⚠️ Email {mask_email(email)} registered concurrently")
            raise EmailAlreadyRegistered() from e

        self.db.refresh(client)
        logger.info(f"✅ Client {client.id} registered from token {row.id}")

        session_token = create_session_token(client, self.issuer)

        await self.notifier.notify(
            "client_welcome",
            Recipient(email=client.email, name=client.full_name, client_id=client.id),
            {"client_name": client.full_name, "dashboard_url": f"{FRONTEND_URL}/onboarding"},
        )
        return RegistrationResult(client=client, session_token=session_token)
