"""Registration token repository - backing rows for signed registration tokens"""

from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from ...models import Client, RegistrationToken


class RegistrationTokenRepository:
    """Repository for registration token database operations"""

    @staticmethod
    def get_by_jti(db: Session, jti: str) -> Optional[RegistrationToken]:
        return db.query(RegistrationToken).filter(RegistrationToken.id == jti).first()

    @staticmethod
    def get_live_for_email(db: Session, email: str, now: datetime) -> Optional[RegistrationToken]:
        """Newest token for this email that is neither consumed nor expired"""
        return (
            db.query(RegistrationToken)
            .filter(
                RegistrationToken.email == email,
                RegistrationToken.consumed.is_(False),
                RegistrationToken.expires_at > now,
            )
            .order_by(RegistrationToken.issued_at.desc())
            .first()
        )

    @staticmethod
    def create(db: Session, **data) -> RegistrationToken:
        token = RegistrationToken(**data)
        db.add(token)
        db.flush()
        return token

    @staticmethod
    def consume(db: Session, jti: str, now: datetime) -> int:
        """Single-use guard: flips consumed only while it is still false"""
        return (
            db.query(RegistrationToken)
            .filter(RegistrationToken.id == jti, RegistrationToken.consumed.is_(False))
            .update({"consumed": True, "consumed_at": now}, synchronize_session=False)
        )

    @staticmethod
    def client_exists(db: Session, email: str) -> bool:
        return db.query(Client.id).filter(Client.email == email).first() is not None
