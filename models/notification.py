from enum import Enum as PyEnum
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Text, Enum, Index
from sqlalchemy.orm import relationship

from database import Base, utcnow


class NotificationType(str, PyEnum):
    """Types of notifications."""
    LIKE = "like"
    COMMENT = "comment"
    FOLLOW = "follow"
    MENTION = "mention"
    REPOST = "repost"
    SHARE = "share"
    FRIEND_LISTENING = "friend_listening"
    NETWORK_TRENDING = "network_trending"
    SYSTEM_UPDATE = "system_update"


class Notification(Base):
    """
    In-app notification owned by its recipient.

    When ``group_key`` is set there is at most one row per
    (recipient_id, group_key); repeat events update that row in place.
    ``read_at`` NULL means unread.
    """
    __tablename__ = 'notifications'

    id = Column(Integer, primary_key=True, index=True)
    recipient_id = Column(Integer, ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    actor_id = Column(Integer, ForeignKey('users.id', ondelete='SET NULL'), nullable=True)
    type = Column(Enum(NotificationType, name='notification_type_enum',
                       values_callable=lambda e: [m.value for m in e]), nullable=False)
    # Target references; targets may be deleted later, so no foreign keys here
    post_id = Column(Integer, nullable=True)
    comment_id = Column(Integer, nullable=True)
    profile_id = Column(Integer, nullable=True)
    message = Column(Text, nullable=False)
    group_key = Column(String(255), nullable=True)
    read_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    recipient = relationship("User", foreign_keys=[recipient_id], back_populates="notifications")

    __table_args__ = (
        Index('ix_notifications_recipient_group', 'recipient_id', 'group_key'),
        Index('ix_notifications_recipient_read', 'recipient_id', 'read_at'),
        Index('ix_notifications_recipient_created', 'recipient_id', 'created_at'),
    )

    @property
    def is_read(self) -> bool:
        return self.read_at is not None

    def __repr__(self):
        return f"<Notification {self.id} {self.type} -> {self.recipient_id}>"
