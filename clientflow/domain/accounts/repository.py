"""Account repository - Database operations for client and operator accounts"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import Client


class AccountRepository:
    """Repository for account database operations"""

    @staticmethod
    def get(db: Session, client_id: str) -> Optional[Client]:
        return db.query(Client).filter(Client.id == client_id).first()

    @staticmethod
    def get_by_email(db: Session, email: str) -> Optional[Client]:
        return db.query(Client).filter(Client.email == email).first()

    @staticmethod
    def create(db: Session, **data) -> Client:
        client = Client(**data)
        db.add(client)
        db.flush()
        return client

    @staticmethod
    def deactivate(db: Session, client_id: str) -> int:
        """Soft delete; rows are never removed while applications reference them"""
        return (
            db.query(Client)
            .filter(Client.id == client_id, Client.status != "suspended")
            .update({"status": "suspended", "is_active": False}, synchronize_session=False)
        )
