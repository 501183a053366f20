"""Invitation service - payment verification and registration invitations"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.orm import Session

from ...config import (
    FRONTEND_URL,
    INVITE_TOKEN_TTL_HOURS,
    REGISTRATION_PATH,
    REGISTRATION_TOKEN_TTL_DAYS,
)
from ...database import commit_or_rollback
from ...exceptions import ConflictError, NotFoundError
from ...models import Client, ConsultationRequest, RegistrationToken
from ...security_utils import INTENT_REGISTRATION, TokenIssuer, mask_email, token_issuer
from ...services.notification_service import NotificationDispatcher, Recipient
from ..consultations.repository import ConsultationRepository
from .repository import RegistrationTokenRepository
from .schemas import PaymentVerify

logger = logging.getLogger(__name__)

ALREADY_INVITED_MESSAGE = "Already invited, registration link resent"


def registration_link(token: str) -> str:
    return f"{FRONTEND_URL}{REGISTRATION_PATH}?token={token}"


@dataclass
class InvitationResult:
    email: str
    token: str
    expires_at: datetime
    resent: bool
    message: str

    @property
    def registration_link(self) -> str:
        return registration_link(self.token)


class InvitationService:
    """Bridges a paid prospect (or a direct invite) to a registration token"""

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
        self.consultations = ConsultationRepository()

    def _guard_not_registered(self, email: str) -> None:
        if self.repo.client_exists(self.db, email):
            logger.warning(f"⚠️ Invitation refused, {mask_email(email)} already has an account")
            raise ConflictError(
                "This prospect already has a registered account", code="ALREADY_REGISTERED"
            )

    async def _resend_live(self, live: RegistrationToken) -> InvitationResult:
        """Idempotent path: re-send the existing link, mint nothing"""
        logger.info(f"🔁 Live registration token {live.id} exists for {mask_email(live.email)}; resending")
        await self.notifier.notify(
            "registration_link_resent",
            Recipient(email=live.email, name=live.full_name or ""),
            {
                "client_name": live.full_name or "",
                "registration_url": registration_link(live.token),
                "expires_at": live.expires_at.strftime("%Y-%m-%d %H:%M UTC"),
            },
        )
        return InvitationResult(
            email=live.email,
            token=live.token,
            expires_at=live.expires_at,
            resent=True,
            message=ALREADY_INVITED_MESSAGE,
        )

    def _mint(
        self,
        email: str,
        full_name: str,
        ttl: timedelta,
        source: str,
        consultation_id: Optional[str] = None,
        issued_by: Optional[str] = None,
    ) -> RegistrationToken:
        """Sign a registration token and stage its backing row (caller commits)"""
        issued = self.issuer.issue(
            subject=email, intent=INTENT_REGISTRATION, ttl=ttl, extra={"name": full_name}
        )
        return self.repo.create(
            self.db,
            id=issued.jti,
            email=email,
            full_name=full_name,
            intent=INTENT_REGISTRATION,
            token=issued.token,
            source=source,
            consultation_id=consultation_id,
            issued_by=issued_by,
            issued_at=issued.issued_at,
            expires_at=issued.expires_at,
        )

    def _resolve_consultation(self, data: PaymentVerify) -> ConsultationRequest:
        if data.requestId:
            consultation = self.consultations.get(self.db, data.requestId)
        else:
            consultation = self.consultations.get_latest_for_email(self.db, data.prospectEmail)
        if not consultation:
            raise NotFoundError("No consultation request found for this prospect")
        return consultation

    # ------------------------------------------------------------------
    # Payment verification
    # ------------------------------------------------------------------

    async def verify_and_invite(
        self, data: PaymentVerify, operator: Optional[Client] = None
    ) -> InvitationResult:
        consultation = self._resolve_consultation(data)
        email = consultation.email

        self._guard_not_registered(email)

        if consultation.status == "rejected":
            logger.warning(f"⚠️ Payment verification refused for rejected consultation {consultation.id}")
            raise ConflictError("Payment cannot be verified for a rejected consultation")

        now = self.issuer.clock()
        live = self.repo.get_live_for_email(self.db, email, now)
        if live:
            return await self._resend_live(live)

        if not consultation.payment_verified:
            rows = self.consultations.record_payment(
                self.db,
                consultation.id,
                {
                    "payment_verified": True,
                    "payment_amount": data.amount,
                    "payment_method": data.method,
                    "payment_reference": data.reference,
                    "package_tier": data.tier,
                    "payment_verified_by": operator.id if operator else None,
                    "payment_verified_at": now,
                },
            )
            if rows == 0:
                self.db.rollback()
                logger.warning(f"⚠️ Payment for consultation {consultation.id} was recorded concurrently")
                raise ConflictError(
                    "Payment for this prospect was just verified by another operator",
                    code="DUPLICATE_PAYMENT",
                )
            logger.info(f"💰 Payment recorded for consultation {consultation.id}")
        else:
            # Payment already on file, its link lapsed unused: re-issue only
            logger.info(f"🔁 Re-issuing registration token for consultation {consultation.id}")

        token_row = self._mint(
            email=email,
            full_name=consultation.full_name,
            ttl=timedelta(days=REGISTRATION_TOKEN_TTL_DAYS),
            source="consultation",
            consultation_id=consultation.id,
            issued_by=operator.id if operator else None,
        )
        token, expires_at, jti = token_row.token, token_row.expires_at, token_row.id
        commit_or_rollback(self.db, "payment verification")
        logger.info(f"✅ Registration token {jti} issued for {mask_email(email)}")

        self.db.refresh(consultation)
        await self.notifier.notify(
            "payment_verified_registration",
            Recipient(email=email, name=consultation.full_name),
            {
                "client_name": consultation.full_name,
                "payment_amount": consultation.payment_amount,
                "payment_method": consultation.payment_method,
                "package_tier": consultation.package_tier,
                "registration_url": registration_link(token),
                "expires_at": expires_at.strftime("%Y-%m-%d %H:%M UTC"),
            },
        )
        return InvitationResult(
            email=email,
            token=token,
            expires_at=expires_at,
            resent=False,
            message="Payment verified, registration link sent",
        )

    # ------------------------------------------------------------------
    # Direct invites and resends
    # ------------------------------------------------------------------

    async def invite(self, email: str, full_name: str, operator: Optional[Client] = None) -> InvitationResult:
        """Operator invite without a paid consultation; shorter-lived link"""
        self._guard_not_registered(email)

        live = self.repo.get_live_for_email(self.db, email, self.issuer.clock())
        if live:
            return await self._resend_live(live)

        token_row = self._mint(
            email=email,
            full_name=full_name,
            ttl=timedelta(hours=INVITE_TOKEN_TTL_HOURS),
            source="invite",
            issued_by=operator.id if operator else None,
        )
        token, expires_at = token_row.token, token_row.expires_at
        commit_or_rollback(self.db, "signup invite")
        logger.info(f"✅ Signup invite issued for {mask_email(email)}")

        await self.notifier.notify(
            "signup_invite",
            Recipient(email=email, name=full_name),
            {
                "client_name": full_name,
                "registration_url": registration_link(token),
                "expires_at": expires_at.strftime("%Y-%m-%d %H:%M UTC"),
            },
        )
        return InvitationResult(
            email=email, token=token, expires_at=expires_at, resent=False, message="Invitation sent"
        )

    async def resend(self, email: str) -> InvitationResult:
        """Re-send the live link, or re-issue one for a paid prospect whose link lapsed"""
        self._guard_not_registered(email)

        now = self.issuer.clock()
        live = self.repo.get_live_for_email(self.db, email, now)
        if live:
            return await self._resend_live(live)

        consultation = self.consultations.get_paid_for_email(self.db, email)
        if not consultation:
            raise NotFoundError("No pending invitation for this email")

        token_row = self._mint(
            email=email,
            full_name=consultation.full_name,
            ttl=timedelta(days=REGISTRATION_TOKEN_TTL_DAYS),
            source="consultation",
            consultation_id=consultation.id,
        )
        token, expires_at = token_row.token, token_row.expires_at
        commit_or_rollback(self.db, "registration link re-issue")
        logger.info(f"🔁 Registration token re-issued for {mask_email(email)}")

        await self.notifier.notify(
            "registration_link_resent",
            Recipient(email=email, name=consultation.full_name),
            {
                "client_name": consultation.full_name,
                "registration_url": registration_link(token),
                "expires_at": expires_at.strftime("%Y-%m-%d %H:%M UTC"),
            },
        )
        return InvitationResult(
            email=email, token=token, expires_at=expires_at, resent=True, message=ALREADY_INVITED_MESSAGE
        )
