import logging
import uuid
from typing import List, Tuple

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from config import settings
from database import utcnow
from models.comment import Comment, PostShare
from models.like import Like, Repost
from models.notification import NotificationType
from models.post import Post
from schemas.post import PostCreate, CommentResponse
from services import group_keys
from services.notification_service import NotificationService

logger = logging.getLogger(__name__)

COMMENT_SNIPPET_LENGTH = 80


def _snippet(text: str, length: int = COMMENT_SNIPPET_LENGTH) -> str:
    text = " ".join(text.split())
    return text if len(text) <= length else text[:length - 1].rstrip() + "…"


class PostService:
    """
    Service for posts and the engagement on them.

    Every mutator updates its join-table row and the post's denormalized
    counter in one transaction, then hands the event to the notification
    engine before committing.
    """

    def __init__(self, db: Session):
        self.db = db
        self.notifications = NotificationService(db)

    def get_post_or_404(self, post_id: int) -> Post:
        post = self.db.get(Post, post_id)
        if post is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Post not found"
            )
        return post

    def _commit(self) -> None:
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

    def create_post(self, user_id: int, post_data: PostCreate) -> Post:
        """
        Create a new post.

        Args:
            user_id: ID of the post author
            post_data: Post fields

        Returns:
            The created Post
        """
        post = Post(
            author_id=user_id,
            type=post_data.type,
            title=post_data.title.strip(),
            content=post_data.content,
            spotify_url=post_data.spotify_url,
            apple_music_url=post_data.apple_music_url,
            youtube_url=post_data.youtube_url,
            tags=[t.strip() for t in post_data.tags if t and t.strip()],
            likes_count=0,
            comments_count=0,
            reposts_count=0,
            plays_count=0,
            created_at=utcnow(),
        )
        self.db.add(post)
        self._commit()
        self.db.refresh(post)
        logger.info(f"User {user_id} created post {post.id}")
        return post

    def delete_post(self, user_id: int, post_id: int) -> None:
        post = self.get_post_or_404(post_id)
        if post.author_id != user_id:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="You can only delete your own posts"
            )
        self.db.delete(post)
        self._commit()
        logger.info(f"User {user_id} deleted post {post_id}")

    # Likes

    def like(self, user_id: int, post_id: int) -> int:
        """
        Like a post, notify its author and check the trending thresholds.

        Returns:
            The new like count
        """
        post = self.get_post_or_404(post_id)
        existing = self.db.query(Like).filter(Like.user_id == user_id, Like.post_id == post_id).first()
        if existing is not None:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="You already liked this post"
            )

        try:
            self.db.add(Like(user_id=user_id, post_id=post_id, created_at=utcnow()))
            likes_before = post.likes_count or 0
            post.likes_count = likes_before + 1
            self.db.flush()

            if post.author_id != user_id:
                actor_name = self.notifications.identity.display_name(user_id)
                self.notifications.upsert_notification(
                    recipient_id=post.author_id,
                    actor_id=user_id,
                    type=NotificationType.LIKE,
                    message=f"{actor_name} liked your post \"{post.title}\"",
                    post_id=post.id,
                    group_key=group_keys.like(post.id, user_id),
                )
            self.notifications.notify_trending(post, likes_before, post.likes_count)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        return post.likes_count

    def unlike(self, user_id: int, post_id: int) -> int:
        """Remove a like and retract its notification. Returns the new count."""
        post = self.get_post_or_404(post_id)
        existing = self.db.query(Like).filter(Like.user_id == user_id, Like.post_id == post_id).first()
        if existing is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="You have not liked this post"
            )

        try:
            self.db.delete(existing)
            post.likes_count = max(0, (post.likes_count or 0) - 1)
            self.notifications.delete_notifications_by_group(
                post.author_id, group_keys.like(post.id, user_id)
            )
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        return post.likes_count

    def toggle_like(self, user_id: int, post_id: int) -> Tuple[bool, int]:
        liked = self.db.query(Like.id).filter(Like.user_id == user_id, Like.post_id == post_id).first()
        if liked:
            return False, self.unlike(user_id, post_id)
        return True, self.like(user_id, post_id)

    # Reposts

    def repost(self, user_id: int, post_id: int) -> int:
        post = self.get_post_or_404(post_id)
        existing = self.db.query(Repost).filter(Repost.user_id == user_id, Repost.post_id == post_id).first()
        if existing is not None:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="You already reposted this post"
            )

        try:
            self.db.add(Repost(user_id=user_id, post_id=post_id, created_at=utcnow()))
            post.reposts_count = (post.reposts_count or 0) + 1
            self.db.flush()

            if post.author_id != user_id:
                actor_name = self.notifications.identity.display_name(user_id)
                self.notifications.upsert_notification(
                    recipient_id=post.author_id,
                    actor_id=user_id,
                    type=NotificationType.REPOST,
                    message=f"{actor_name} reposted your post \"{post.title}\"",
                    post_id=post.id,
                    group_key=group_keys.repost(post.id, user_id),
                )
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        return post.reposts_count

    def unrepost(self, user_id: int, post_id: int) -> int:
        post = self.get_post_or_404(post_id)
        existing = self.db.query(Repost).filter(Repost.user_id == user_id, Repost.post_id == post_id).first()
        if existing is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="You have not reposted this post"
            )

        try:
            self.db.delete(existing)
            post.reposts_count = max(0, (post.reposts_count or 0) - 1)
            self.notifications.delete_notifications_by_group(
                post.author_id, group_keys.repost(post.id, user_id)
            )
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        return post.reposts_count

    def toggle_repost(self, user_id: int, post_id: int) -> Tuple[bool, int]:
        reposted = self.db.query(Repost.id).filter(Repost.user_id == user_id, Repost.post_id == post_id).first()
        if reposted:
            return False, self.unrepost(user_id, post_id)
        return True, self.repost(user_id, post_id)

    # Comments

    def add_comment(self, user_id: int, post_id: int, content: str) -> Comment:
        """
        Add a comment, notify the post author and every @mentioned user.

        Raises:
            HTTPException: 400 for an empty comment, 404 for a missing post
        """
        content = (content or "").strip()
        if not content:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Comment cannot be empty"
            )
        post = self.get_post_or_404(post_id)

        try:
            comment = Comment(author_id=user_id, post_id=post_id, content=content, created_at=utcnow())
            self.db.add(comment)
            post.comments_count = (post.comments_count or 0) + 1
            self.db.flush()

            if post.author_id != user_id:
                actor_name = self.notifications.identity.display_name(user_id)
                self.notifications.upsert_notification(
                    recipient_id=post.author_id,
                    actor_id=user_id,
                    type=NotificationType.COMMENT,
                    message=f"{actor_name} commented on \"{post.title}\": {_snippet(content)}",
                    post_id=post.id,
                    comment_id=comment.id,
                    group_key=group_keys.comment(comment.id),
                )
            self.notifications.notify_mentions(comment.id, post, user_id, content)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(comment)
        return comment

    def list_comments(self, post_id: int) -> List[CommentResponse]:
        self.get_post_or_404(post_id)
        comments = self.db.query(Comment).filter(
            Comment.post_id == post_id
        ).order_by(Comment.created_at.asc(), Comment.id.asc()).all()
        authors = self.notifications.identity.display_identities(c.author_id for c in comments)
        return [
            CommentResponse(
                id=c.id,
                post_id=c.post_id,
                content=c.content,
                created_at=c.created_at,
                author=authors[c.author_id],
            )
            for c in comments
        ]

    # Shares and plays

    def share_post(self, user_id: int, post_id: int) -> Tuple[str, str]:
        """
        Create a share reference for a post.

        Returns:
            (share code, absolute share URL)
        """
        post = self.get_post_or_404(post_id)
        code = uuid.uuid4().hex[:10]

        try:
            self.db.add(PostShare(code=code, post_id=post.id, user_id=user_id, created_at=utcnow()))
            self.db.flush()
            if post.author_id != user_id:
                actor_name = self.notifications.identity.display_name(user_id)
                self.notifications.upsert_notification(
                    recipient_id=post.author_id,
                    actor_id=user_id,
                    type=NotificationType.SHARE,
                    message=f"{actor_name} shared your post \"{post.title}\"",
                    post_id=post.id,
                    group_key=group_keys.share(post.id, user_id),
                )
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        url = f"{settings.SITE_URL.rstrip('/')}/?tab=feed&postId={post.id}&share={code}"
        return code, url

    def record_play(self, user_id: int, post_id: int) -> int:
        post = self.get_post_or_404(post_id)
        post.plays_count = (post.plays_count or 0) + 1
        self._commit()
        logger.debug(f"User {user_id} played post {post_id}")
        return post.plays_count
