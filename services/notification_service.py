import logging
import re
from datetime import timedelta
from typing import Dict, Iterable, List, Optional, Sequence

from fastapi import HTTPException, status
from sqlalchemy import event
from sqlalchemy.orm import Session

from config import settings
from database import utcnow
from models.follower import Follower
from models.notification import Notification, NotificationType
from models.post import Post
from models.user import User
from schemas.notification import NotificationResponse
from services import group_keys
from services.identity_service import IdentityService
from services.task_queue import task_queue

logger = logging.getLogger(__name__)

MENTION_PATTERN = re.compile(r"@([A-Za-z0-9_.\-]{2,32})")

# Session.info key holding notification ids whose push waits for COMMIT
PENDING_PUSH_KEY = "pending_push_notification_ids"


def extract_mentions(text: Optional[str]) -> List[str]:
    """Return lower-cased, de-duplicated @handles in order of first appearance."""
    if not text:
        return []
    seen: Dict[str, None] = {}
    for match in MENTION_PATTERN.finditer(text):
        # Sentence punctuation right after a handle is not part of it
        handle = match.group(1).rstrip(".-").lower()
        if len(handle) >= 2:
            seen.setdefault(handle, None)
    return list(seen)


def crossed_threshold(before: int, after: int, thresholds: Sequence[int]) -> Optional[int]:
    """First threshold in ascending order with ``before < t <= after``."""
    for threshold in sorted(thresholds):
        if before < threshold <= after:
            return threshold
    return None


@event.listens_for(Session, "after_commit")
def _dispatch_pending_pushes(session):
    pending = session.info.pop(PENDING_PUSH_KEY, None)
    if not pending:
        return
    for notification_id in dict.fromkeys(pending):
        task_queue.enqueue_push(notification_id)


@event.listens_for(Session, "after_rollback")
def _discard_pending_pushes(session):
    session.info.pop(PENDING_PUSH_KEY, None)


class NotificationService:
    """
    Creates, deduplicates, retracts and reads notifications.

    Writes only flush; the calling mutator owns the transaction. Push
    delivery for every upserted row is queued once that transaction
    commits, so the worker never sees a half-written notification.
    """

    def __init__(self, db: Session):
        self.db = db
        self.identity = IdentityService(db)

    def upsert_notification(
        self,
        recipient_id: int,
        type: NotificationType,
        message: str,
        actor_id: Optional[int] = None,
        post_id: Optional[int] = None,
        comment_id: Optional[int] = None,
        profile_id: Optional[int] = None,
        group_key: Optional[str] = None,
    ) -> int:
        """
        Insert a notification, or refresh the one sharing ``group_key``.

        A refreshed row takes the new actor, type, message and targets,
        moves to the top (``created_at`` = now) and becomes unread again.

        Returns:
            The notification id
        """
        now = utcnow()
        existing = None
        if group_key:
            existing = self.db.query(Notification).filter(
                Notification.recipient_id == recipient_id,
                Notification.group_key == group_key
            ).order_by(Notification.id).first()

        if existing is not None:
            existing.actor_id = actor_id
            existing.type = type
            existing.message = message
            existing.post_id = post_id
            existing.comment_id = comment_id
            existing.profile_id = profile_id
            existing.created_at = now
            existing.read_at = None
            notification = existing
        else:
            notification = Notification(
                recipient_id=recipient_id,
                actor_id=actor_id,
                type=type,
                message=message,
                post_id=post_id,
                comment_id=comment_id,
                profile_id=profile_id,
                group_key=group_key,
                read_at=None,
                created_at=now,
            )
            self.db.add(notification)

        self.db.flush()
        self.db.info.setdefault(PENDING_PUSH_KEY, []).append(notification.id)
        return notification.id

    def delete_notifications_by_group(self, recipient_id: int, group_key: str) -> int:
        """Retract every notification for (recipient, group_key). Returns rows deleted."""
        deleted = self.db.query(Notification).filter(
            Notification.recipient_id == recipient_id,
            Notification.group_key == group_key
        ).delete()
        if deleted:
            logger.debug(f"Retracted {deleted} notification(s) {group_key} for user {recipient_id}")
        return deleted

    def follower_ids(self, user_id: int) -> List[int]:
        rows = self.db.query(Follower.follower_id).filter(Follower.followed_id == user_id).all()
        return [row.follower_id for row in rows if row.follower_id != user_id]

    def notify_trending(self, post: Post, likes_before: int, likes_after: int) -> Optional[int]:
        """
        Fan out ``network_trending`` to the author's followers when a like
        pushes the post over a threshold.

        Returns:
            The threshold that fired, or None
        """
        threshold = crossed_threshold(likes_before, likes_after, settings.TRENDING_THRESHOLDS)
        if threshold is None:
            return None

        followers = self.follower_ids(post.author_id)
        if not followers:
            return threshold

        author_name = self.identity.display_name(post.author_id)
        message = f"{author_name}'s post \"{post.title}\" is trending with {threshold} likes"
        for follower_id in followers:
            self.upsert_notification(
                recipient_id=follower_id,
                type=NotificationType.NETWORK_TRENDING,
                message=message,
                post_id=post.id,
                group_key=group_keys.network_trending(post.id, threshold, follower_id),
            )
        logger.info(f"Post {post.id} crossed {threshold} likes; notified {len(followers)} followers")
        return threshold

    def notify_mentions(self, comment_id: int, post: Post, author_id: int, content: str) -> List[int]:
        """
        One ``mention`` notification per resolved handle in a comment.

        The commenter is never notified, and the post author is skipped
        when they already receive the comment notification.

        Returns:
            Ids of the mentioned users that were notified
        """
        handles = extract_mentions(content)
        if not handles:
            return []

        resolved = self.identity.find_user_ids_by_display_name(handles)
        author_name = self.identity.display_name(author_id)
        notified: List[int] = []
        for handle in handles:
            user_id = resolved.get(handle)
            if user_id is None or user_id == author_id or user_id in notified:
                continue
            if user_id == post.author_id:
                continue
            self.upsert_notification(
                recipient_id=user_id,
                actor_id=author_id,
                type=NotificationType.MENTION,
                message=f"{author_name} mentioned you in a comment on \"{post.title}\"",
                post_id=post.id,
                comment_id=comment_id,
                group_key=group_keys.mention(comment_id, user_id),
            )
            notified.append(user_id)
        return notified

    def broadcast_system_update(self, message: str, recipient_ids: Optional[Iterable[int]] = None) -> int:
        """Send a ``system_update``; identical messages collapse per recipient."""
        message = message.strip()
        if not message:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Message cannot be empty"
            )
        if recipient_ids is None:
            recipients = self.identity.list_user_ids()
        else:
            recipients = list(dict.fromkeys(recipient_ids))

        for recipient_id in recipients:
            self.upsert_notification(
                recipient_id=recipient_id,
                type=NotificationType.SYSTEM_UPDATE,
                message=message,
                group_key=group_keys.system_update(recipient_id, message),
            )
        self.db.commit()
        return len(recipients)

    # Read side

    def list_notifications(
        self,
        user_id: Optional[int],
        limit: int = 20,
        within_days: Optional[int] = 30,
    ) -> List[NotificationResponse]:
        if user_id is None:
            return []

        query = self.db.query(Notification).filter(Notification.recipient_id == user_id)
        if within_days:
            query = query.filter(Notification.created_at >= utcnow() - timedelta(days=within_days))
        notifications = query.order_by(
            Notification.created_at.desc(), Notification.id.desc()
        ).limit(limit).all()

        actors = self.identity.display_identities(
            n.actor_id for n in notifications if n.actor_id is not None
        )
        post_ids = {n.post_id for n in notifications if n.post_id is not None}
        profile_ids = {n.profile_id for n in notifications if n.profile_id is not None}
        existing_posts = {
            row.id for row in self.db.query(Post.id).filter(Post.id.in_(post_ids)).all()
        } if post_ids else set()
        existing_users = {
            row.id for row in self.db.query(User.id).filter(User.id.in_(profile_ids)).all()
        } if profile_ids else set()

        result = []
        for n in notifications:
            if n.post_id is not None:
                target_exists = n.post_id in existing_posts
            elif n.profile_id is not None:
                target_exists = n.profile_id in existing_users
            else:
                target_exists = True
            result.append(NotificationResponse(
                id=n.id,
                type=n.type,
                message=n.message,
                post_id=n.post_id,
                comment_id=n.comment_id,
                profile_id=n.profile_id,
                actor=actors.get(n.actor_id) if n.actor_id is not None else None,
                is_read=n.is_read,
                target_exists=target_exists,
                created_at=n.created_at,
            ))
        return result

    def unread_count(self, user_id: Optional[int]) -> int:
        if user_id is None:
            return 0
        return self.db.query(Notification).filter(
            Notification.recipient_id == user_id,
            Notification.read_at.is_(None)
        ).count()

    def mark_read(self, user_id: int, notification_id: int) -> Notification:
        notification = self.db.get(Notification, notification_id)
        if notification is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Notification not found"
            )
        if notification.recipient_id != user_id:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="You can only update your own notifications"
            )
        if notification.read_at is None:
            notification.read_at = utcnow()
            self.db.commit()
            self.db.refresh(notification)
        return notification

    def mark_all_read(self, user_id: int) -> int:
        updated = self.db.query(Notification).filter(
            Notification.recipient_id == user_id,
            Notification.read_at.is_(None)
        ).update({Notification.read_at: utcnow()})
        self.db.commit()
        return updated
