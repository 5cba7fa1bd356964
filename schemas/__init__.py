from .user import DisplayIdentity, FollowStats, UserSearchResult
from .follow import FollowEntry, FollowStatus, SeedWelcomeResult
from .post import (
    PostCreate, PostResponse, PostAuthor, ListeningNow,
    CommentCreate, CommentResponse, ToggleResponse, ShareResponse
)
from .notification import (
    NotificationResponse, UnreadCount, MarkAllReadResponse,
    SystemUpdateCreate, PushPayload
)
from .presence import PlaybackReport, PlaybackStateResponse, PresenceResponse
from .push import PushSubscriptionCreate, PushSubscriptionDelete, PushStatus, PushPublicKey

__all__ = [
    # User models
    'DisplayIdentity', 'FollowStats', 'UserSearchResult',
    'FollowEntry', 'FollowStatus', 'SeedWelcomeResult',

    # Post models
    'PostCreate', 'PostResponse', 'PostAuthor', 'ListeningNow',
    'CommentCreate', 'CommentResponse', 'ToggleResponse', 'ShareResponse',

    # Notification models
    'NotificationResponse', 'UnreadCount', 'MarkAllReadResponse',
    'SystemUpdateCreate', 'PushPayload',

    # Presence and push models
    'PlaybackReport', 'PlaybackStateResponse', 'PresenceResponse',
    'PushSubscriptionCreate', 'PushSubscriptionDelete', 'PushStatus', 'PushPublicKey',
]
