"""Application repository - Database operations for job applications"""

from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from ...models import Application, Client


class ApplicationRepository:
    """Repository for application database operations"""

    @staticmethod
    def get(db: Session, application_id: str) -> Optional[Application]:
        return db.query(Application).filter(Application.id == application_id).first()

    @staticmethod
    def get_client(db: Session, client_id: str) -> Optional[Client]:
        return db.query(Client).filter(Client.id == client_id).first()

    @staticmethod
    def list_for_client(db: Session, client_id: str) -> list[Application]:
        return (
            db.query(Application)
            .filter(Application.client_id == client_id)
            .order_by(Application.created_at.desc())
            .all()
        )

    @staticmethod
    def count_by_status(db: Session, client_id: str) -> dict[str, int]:
        rows = (
            db.query(Application.status, func.count(Application.id))
            .filter(Application.client_id == client_id)
            .group_by(Application.status)
            .all()
        )
        return {status: count for status, count in rows}

    @staticmethod
    def create(db: Session, **data) -> Application:
        application = Application(**data)
        db.add(application)
        db.flush()
        return application

    @staticmethod
    def transition(db: Session, application_id: str, from_status: str, values: dict) -> int:
        """Conditional update keyed on the status the caller validated against"""
        return (
            db.query(Application)
            .filter(Application.id == application_id, Application.status == from_status)
            .update(values, synchronize_session=False)
        )
