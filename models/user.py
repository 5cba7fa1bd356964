from typing import TYPE_CHECKING
from sqlalchemy import Column, Integer, String, Boolean, DateTime, Text, ForeignKey
from sqlalchemy.orm import relationship

from database import Base, utcnow

# Import for type checking to avoid circular imports
if TYPE_CHECKING:
    from .post import Post
    from .notification import Notification
    from .push_subscription import PushSubscription


class User(Base):
    """Account record supplied by the authentication collaborator."""
    __tablename__ = 'users'

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=True)
    email = Column(String(255), unique=True, index=True, nullable=True)
    is_anonymous = Column(Boolean, default=False, nullable=False)
    is_admin = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    # Relationships - using string-based references to avoid circular imports
    profile = relationship(
        "Profile",
        back_populates="user",
        uselist=False,
        cascade="all, delete-orphan"
    )
    posts = relationship(
        "Post",
        back_populates="author",
        cascade="all, delete-orphan"
    )
    notifications = relationship(
        "Notification",
        foreign_keys="Notification.recipient_id",
        back_populates="recipient",
        cascade="all, delete-orphan"
    )
    push_subscriptions = relationship(
        "PushSubscription",
        back_populates="user",
        cascade="all, delete-orphan"
    )

    def __repr__(self):
        return f"<User {self.id} {self.email}>"


class Profile(Base):
    """Public profile; its display name doubles as the @mention handle."""
    __tablename__ = 'profiles'

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey('users.id', ondelete='CASCADE'), unique=True, nullable=False)
    display_name = Column(String(100), nullable=False, index=True)
    bio = Column(Text, nullable=True)
    avatar = Column(String(255), nullable=True, comment='Opaque blob-store reference')
    is_public = Column(Boolean, default=True, nullable=False)

    user = relationship("User", back_populates="profile")
