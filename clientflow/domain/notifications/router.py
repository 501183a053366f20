from datetime import datetime
from typing import Any, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ...auth import get_current_user
from ...database import commit_or_rollback, get_db
from ...exceptions import NotFoundError
from ...models import Client, Notification
from ...shared.validators import get_clock

router = APIRouter(prefix="/notifications", tags=["Notifications"])


class NotificationResponse(BaseModel):
    id: int
    event: str
    title: str
    message: Optional[str] = None
    payload: Optional[dict[str, Any]] = None
    isRead: bool
    createdAt: Optional[datetime] = None


class NotificationInbox(BaseModel):
    unreadCount: int
    notifications: list[NotificationResponse]


def to_response(n: Notification) -> NotificationResponse:
    return NotificationResponse(
        id=n.id,
        event=n.event,
        title=n.title,
        message=n.message,
        payload=n.payload,
        isRead=bool(n.is_read),
        createdAt=n.created_at,
    )


@router.get("", response_model=NotificationInbox)
async def list_notifications(
    unread_only: bool = Query(False, alias="unreadOnly"),
    limit: int = Query(50, ge=1, le=200),
    current_user: Client = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """In-app notifications for the signed-in account, newest first"""
    query = db.query(Notification).filter(Notification.client_id == current_user.id)
    unread_count = query.filter(Notification.is_read.is_(False)).count()
    if unread_only:
        query = query.filter(Notification.is_read.is_(False))

    notifications = query.order_by(Notification.id.desc()).limit(limit).all()
    return NotificationInbox(
        unreadCount=unread_count,
        notifications=[to_response(n) for n in notifications],
    )


@router.patch("/{notification_id}/read", response_model=NotificationResponse)
async def mark_notification_read(
    notification_id: int,
    current_user: Client = Depends(get_current_user),
    db: Session = Depends(get_db),
    clock=Depends(get_clock),
):
    notification = (
        db.query(Notification)
        .filter(Notification.id == notification_id, Notification.client_id == current_user.id)
        .first()
    )
    if not notification:
        raise NotFoundError("Notification not found")

    if not notification.is_read:
        notification.is_read = True
        notification.read_at = clock()
        commit_or_rollback(db, "mark notification read")
        db.refresh(notification)

    return to_response(notification)
