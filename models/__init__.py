"""
Models package for the application.

This package contains all SQLAlchemy models for the application.
"""

# Import all models here to make them available when importing from models
from .user import User, Profile
from .post import Post, PostType
from .comment import Comment, PostShare
from .like import Like, Repost
from .follower import Follower
from .notification import Notification, NotificationType
from .presence import UserPresence, PlaybackState
from .push_subscription import PushSubscription
from .growth_onboarding import GrowthOnboarding

__all__ = [
    'User',
    'Profile',
    'Post',
    'PostType',
    'Comment',
    'PostShare',
    'Like',
    'Repost',
    'Follower',
    'Notification',
    'NotificationType',
    'UserPresence',
    'PlaybackState',
    'PushSubscription',
    'GrowthOnboarding',
]
