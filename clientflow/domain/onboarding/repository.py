"""Onboarding repository - Database operations for onboarding records"""

from typing import Iterable, Optional

from sqlalchemy.orm import Session

from ...models import Client, OnboardingRecord


class OnboardingRepository:
    """Repository for onboarding database operations"""

    @staticmethod
    def get_by_client(db: Session, client_id: str) -> Optional[OnboardingRecord]:
        return db.query(OnboardingRecord).filter(OnboardingRecord.client_id == client_id).first()

    @staticmethod
    def get_client(db: Session, client_id: str) -> Optional[Client]:
        return db.query(Client).filter(Client.id == client_id).first()

    @staticmethod
    def create(db: Session, **data) -> OnboardingRecord:
        record = OnboardingRecord(**data)
        db.add(record)
        db.flush()
        return record

    @staticmethod
    def transition(db: Session, client_id: str, from_statuses: Iterable[str], values: dict) -> int:
        """Conditional update keyed on the expected prior execution status"""
        return (
            db.query(OnboardingRecord)
            .filter(
                OnboardingRecord.client_id == client_id,
                OnboardingRecord.execution_status.in_(list(from_statuses)),
            )
            .update(values, synchronize_session=False)
        )

    @staticmethod
    def update_client(db: Session, client_id: str, values: dict) -> int:
        """Suspended accounts are left untouched; zero rows means the guard held"""
        return (
            db.query(Client)
            .filter(Client.id == client_id, Client.status != "suspended")
            .update(values, synchronize_session=False)
        )
