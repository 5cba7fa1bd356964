import logging
from datetime import timedelta
from typing import List, Optional

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from database import utcnow
from models.follower import Follower
from models.notification import NotificationType
from models.user import User
from schemas.follow import FollowEntry
from schemas.user import FollowStats
from services import group_keys
from services.notification_service import NotificationService

logger = logging.getLogger(__name__)


class SocialService:
    """Service for the follow graph."""

    def __init__(self, db: Session):
        self.db = db
        self.notifications = NotificationService(db)

    def _get_follow(self, follower_id: int, followed_id: int) -> Optional[Follower]:
        return self.db.query(Follower).filter(
            Follower.follower_id == follower_id,
            Follower.followed_id == followed_id
        ).first()

    def add_follow(self, follower_id: int, followed_id: int) -> Follower:
        """
        Insert a follow edge and notify the followed user. Flushes only.

        Shared by user-initiated follows and seed onboarding.
        """
        follow = Follower(follower_id=follower_id, followed_id=followed_id, created_at=utcnow())
        self.db.add(follow)
        self.db.flush()

        actor_name = self.notifications.identity.display_name(follower_id)
        self.notifications.upsert_notification(
            recipient_id=followed_id,
            actor_id=follower_id,
            profile_id=follower_id,
            type=NotificationType.FOLLOW,
            message=f"{actor_name} started following you",
            group_key=group_keys.follow(follower_id, followed_id),
        )
        return follow

    def follow(self, follower_id: int, followed_id: int) -> Follower:
        """
        Follow a user.

        Raises:
            HTTPException: 400 on self-follow, 404 if the user does not
                exist, 409 if already following
        """
        if follower_id == followed_id:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="You cannot follow yourself"
            )
        if self.db.get(User, followed_id) is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="User to be followed not found"
            )
        if self._get_follow(follower_id, followed_id) is not None:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="You are already following this user"
            )

        try:
            follow = self.add_follow(follower_id, followed_id)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        logger.info(f"User {follower_id} followed {followed_id}")
        return follow

    def unfollow(self, follower_id: int, followed_id: int) -> None:
        """Remove a follow edge and retract its follow notification."""
        follow = self._get_follow(follower_id, followed_id)
        if follow is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="You are not following this user"
            )
        try:
            self.db.delete(follow)
            self.notifications.delete_notifications_by_group(
                followed_id, group_keys.follow(follower_id, followed_id)
            )
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        logger.info(f"User {follower_id} unfollowed {followed_id}")

    def is_following(self, follower_id: Optional[int], followed_id: int) -> bool:
        if follower_id is None:
            return False
        return self._get_follow(follower_id, followed_id) is not None

    def _entries(self, follows: List[Follower], attr: str) -> List[FollowEntry]:
        identities = self.notifications.identity.display_identities(getattr(f, attr) for f in follows)
        return [
            FollowEntry(user=identities[getattr(f, attr)], followed_at=f.created_at)
            for f in follows
        ]

    def _require_user(self, user_id: int) -> None:
        if self.db.get(User, user_id) is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="User not found"
            )

    def followers(self, user_id: int, skip: int = 0, limit: int = 100) -> List[FollowEntry]:
        self._require_user(user_id)
        follows = self.db.query(Follower).filter(
            Follower.followed_id == user_id
        ).order_by(Follower.created_at.desc()).offset(skip).limit(limit).all()
        return self._entries(follows, "follower_id")

    def following(self, user_id: int, skip: int = 0, limit: int = 100) -> List[FollowEntry]:
        self._require_user(user_id)
        follows = self.db.query(Follower).filter(
            Follower.follower_id == user_id
        ).order_by(Follower.created_at.desc()).offset(skip).limit(limit).all()
        return self._entries(follows, "followed_id")

    def recent_followers(self, user_id: int, within_days: int = 30) -> List[FollowEntry]:
        since = utcnow() - timedelta(days=within_days)
        follows = self.db.query(Follower).filter(
            Follower.followed_id == user_id,
            Follower.created_at >= since
        ).order_by(Follower.created_at.desc()).all()
        return self._entries(follows, "follower_id")

    def follow_stats(self, user_id: int) -> FollowStats:
        return FollowStats(
            followers_count=self.db.query(Follower).filter(Follower.followed_id == user_id).count(),
            following_count=self.db.query(Follower).filter(Follower.follower_id == user_id).count(),
        )
