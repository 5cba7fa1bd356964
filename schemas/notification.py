from datetime import datetime
from typing import Optional, List
from pydantic import BaseModel, Field

from models.notification import NotificationType
from .user import DisplayIdentity


class NotificationResponse(BaseModel):
    """Notification as shown in the notifications panel."""
    id: int
    type: NotificationType
    message: str
    post_id: Optional[int] = None
    comment_id: Optional[int] = None
    profile_id: Optional[int] = None
    actor: Optional[DisplayIdentity] = None
    is_read: bool = False
    target_exists: bool = True
    created_at: datetime


class UnreadCount(BaseModel):
    count: int


class MarkAllReadResponse(BaseModel):
    updated: int


class SystemUpdateCreate(BaseModel):
    """Admin broadcast; without recipients it goes to every registered account."""
    message: str = Field(..., min_length=1, max_length=500)
    recipient_ids: Optional[List[int]] = None


class PushPayload(BaseModel):
    """Body the service worker renders: title, body, tray tag and click URL."""
    title: str
    body: str
    tag: str
    url: str
    created_at: int
