from typing import List, Optional

from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.orm import Session

from database import get_db
from models.user import User
from routers.auth import get_current_user, get_optional_user, get_current_admin
from schemas.notification import (
    NotificationResponse, UnreadCount, MarkAllReadResponse, SystemUpdateCreate
)
from services.notification_service import NotificationService

router = APIRouter(prefix="/api/notifications", tags=["Notifications"])


@router.get("", response_model=List[NotificationResponse])
async def get_notifications(
    limit: int = Query(20, ge=1, le=200),
    within_days: int = Query(30, ge=1, le=365),
    db: Session = Depends(get_db),
    current_user: Optional[User] = Depends(get_optional_user)
):
    """Notifications of the current user, newest first; empty for anonymous readers."""
    user_id = current_user.id if current_user else None
    return NotificationService(db).list_notifications(user_id, limit, within_days)


@router.get("/unread-count", response_model=UnreadCount)
async def get_unread_count(
    db: Session = Depends(get_db),
    current_user: Optional[User] = Depends(get_optional_user)
):
    user_id = current_user.id if current_user else None
    return UnreadCount(count=NotificationService(db).unread_count(user_id))


@router.post("/read-all", response_model=MarkAllReadResponse)
async def mark_all_as_read(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return MarkAllReadResponse(updated=NotificationService(db).mark_all_read(current_user.id))


@router.post("/{notification_id}/read")
async def mark_as_read(
    notification_id: int = Path(..., description="Notification ID"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    notification = NotificationService(db).mark_read(current_user.id, notification_id)
    return {"id": notification.id, "is_read": notification.is_read}


@router.post("/system")
async def broadcast_system_update(
    update: SystemUpdateCreate,
    db: Session = Depends(get_db),
    admin: User = Depends(get_current_admin)
):
    sent = NotificationService(db).broadcast_system_update(update.message, update.recipient_ids)
    return {"recipients": sent}
