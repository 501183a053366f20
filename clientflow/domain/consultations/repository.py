"""Consultation repository - Database operations for consultation requests"""

from typing import Iterable, Optional

from sqlalchemy.orm import Session

from ...models import ConsultationRequest


class ConsultationRepository:
    """Repository for consultation database operations"""

    @staticmethod
    def get(db: Session, request_id: str) -> Optional[ConsultationRequest]:
        return db.query(ConsultationRequest).filter(ConsultationRequest.id == request_id).first()

    @staticmethod
    def get_latest_for_email(
        db: Session, email: str, statuses: Optional[Iterable[str]] = None
    ) -> Optional[ConsultationRequest]:
        """Most recent request for an email, optionally limited to some statuses"""
        query = db.query(ConsultationRequest).filter(ConsultationRequest.email == email)
        if statuses:
            query = query.filter(ConsultationRequest.status.in_(list(statuses)))
        return query.order_by(ConsultationRequest.created_at.desc()).first()

    @staticmethod
    def list_requests(db: Session, status: Optional[str] = None) -> list[ConsultationRequest]:
        query = db.query(ConsultationRequest)
        if status:
            query = query.filter(ConsultationRequest.status == status)
        return query.order_by(ConsultationRequest.created_at.desc()).all()

    @staticmethod
    def create(db: Session, **data) -> ConsultationRequest:
        request = ConsultationRequest(**data)
        db.add(request)
        db.flush()
        return request

    @staticmethod
    def transition(db: Session, request_id: str, from_statuses: Iterable[str], values: dict) -> int:
        """
        Conditional update keyed on the expected prior status.
        Returns the number of rows written; 0 means another writer got there first.
        """
        return (
            db.query(ConsultationRequest)
            .filter(
                ConsultationRequest.id == request_id,
                ConsultationRequest.status.in_(list(from_statuses)),
            )
            .update(values, synchronize_session=False)
        )

    @staticmethod
    def record_payment(db: Session, request_id: str, values: dict) -> int:
        """Payment is written once: only while payment_verified is still false"""
        return (
            db.query(ConsultationRequest)
            .filter(
                ConsultationRequest.id == request_id,
                ConsultationRequest.payment_verified.is_(False),
            )
            .update(values, synchronize_session=False)
        )

    @staticmethod
    def get_paid_for_email(db: Session, email: str) -> Optional[ConsultationRequest]:
        return (
            db.query(ConsultationRequest)
            .filter(
                ConsultationRequest.email == email,
                ConsultationRequest.payment_verified.is_(True),
            )
            .order_by(ConsultationRequest.payment_verified_at.desc())
            .first()
        )
