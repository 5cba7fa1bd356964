import logging
from enum import Enum
from typing import List, Optional

from fastapi import HTTPException, status
from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from config import settings
from models.follower import Follower
from models.like import Like, Repost
from models.post import Post
from schemas.post import PostResponse, PostAuthor, ListeningNow
from services.identity_service import IdentityService
from services.presence_service import PresenceService

logger = logging.getLogger(__name__)

MAX_FEED_LIMIT = 100


class FeedScope(str, Enum):
    PERSONAL = "personal"
    PUBLIC = "public"


class FeedService:
    """Builds feeds and single-post views enriched for a viewer."""

    def __init__(self, db: Session):
        self.db = db
        self.identity = IdentityService(db)
        self.presence = PresenceService(db)

    def get_feed(
        self,
        viewer_id: Optional[int],
        scope: FeedScope = FeedScope.PERSONAL,
        limit: Optional[int] = None,
    ) -> List[PostResponse]:
        """
        Newest posts first.

        Personal scope keeps posts by the viewer and everyone they follow;
        without a viewer it falls back to the public feed.
        """
        limit = max(1, min(limit or settings.FEED_DEFAULT_LIMIT, MAX_FEED_LIMIT))
        query = self.db.query(Post)

        if scope == FeedScope.PERSONAL and viewer_id is not None:
            followees = select(Follower.followed_id).where(Follower.follower_id == viewer_id)
            query = query.filter(or_(Post.author_id == viewer_id, Post.author_id.in_(followees)))

        posts = query.order_by(Post.created_at.desc(), Post.id.desc()).limit(limit).all()
        return self.enrich(posts, viewer_id)

    def get_user_posts(self, user_id: int, viewer_id: Optional[int] = None) -> List[PostResponse]:
        posts = self.db.query(Post).filter(
            Post.author_id == user_id
        ).order_by(Post.created_at.desc(), Post.id.desc()).all()
        return self.enrich(posts, viewer_id)

    def search_posts(self, term: Optional[str], viewer_id: Optional[int] = None,
                     limit: int = 20) -> List[PostResponse]:
        """Posts whose title or text contains the term, newest first."""
        term = (term or "").strip()
        if not term:
            return []

        search_term = f"%{term}%"
        posts = self.db.query(Post).filter(
            or_(Post.title.ilike(search_term), Post.content.ilike(search_term))
        ).order_by(Post.created_at.desc(), Post.id.desc()).limit(limit).all()
        return self.enrich(posts, viewer_id)

    def get_post(self, post_id: int, viewer_id: Optional[int] = None) -> PostResponse:
        post = self.db.get(Post, post_id)
        if post is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Post not found"
            )
        return self.enrich([post], viewer_id)[0]

    def enrich(self, posts: List[Post], viewer_id: Optional[int]) -> List[PostResponse]:
        """Attach author identity, the viewer's like/repost flags and author presence."""
        if not posts:
            return []

        post_ids = [p.id for p in posts]
        author_ids = {p.author_id for p in posts}
        liked, reposted = set(), set()
        if viewer_id is not None:
            liked = {
                row.post_id for row in self.db.query(Like.post_id).filter(
                    Like.user_id == viewer_id, Like.post_id.in_(post_ids)
                ).all()
            }
            reposted = {
                row.post_id for row in self.db.query(Repost.post_id).filter(
                    Repost.user_id == viewer_id, Repost.post_id.in_(post_ids)
                ).all()
            }

        identities = self.identity.display_identities(author_ids)
        presences = self.presence.get_presences(author_ids)

        result = []
        for post in posts:
            presence = presences.get(post.author_id)
            listening_now = None
            if presence is not None and presence.is_active:
                listening_now = ListeningNow(
                    track_title=presence.track_title,
                    started_at=presence.started_at,
                )
            author = PostAuthor(**identities[post.author_id].model_dump(), listening_now=listening_now)
            result.append(PostResponse(
                id=post.id,
                type=post.type,
                title=post.title,
                content=post.content,
                spotify_url=post.spotify_url,
                apple_music_url=post.apple_music_url,
                youtube_url=post.youtube_url,
                tags=post.tags or [],
                likes_count=post.likes_count,
                comments_count=post.comments_count,
                reposts_count=post.reposts_count,
                plays_count=post.plays_count,
                created_at=post.created_at,
                author=author,
                is_liked=post.id in liked,
                is_reposted=post.id in reposted,
            ))
        return result
