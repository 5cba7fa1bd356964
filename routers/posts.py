from typing import List, Optional

from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy.orm import Session

from database import get_db
from models.user import User
from routers.auth import get_current_user, get_optional_user
from schemas.post import (
    PostCreate, PostResponse, CommentCreate, CommentResponse,
    ToggleResponse, ShareResponse
)
from services.feed_service import FeedService, FeedScope
from services.post_service import PostService

router = APIRouter(prefix="/api/posts", tags=["Posts"])


def _viewer_id(user: Optional[User]) -> Optional[int]:
    return user.id if user is not None else None


@router.get("/feed", response_model=List[PostResponse])
async def get_feed(
    scope: FeedScope = Query(FeedScope.PERSONAL),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: Optional[User] = Depends(get_optional_user)
):
    """Home feed (self + followed users) or the public feed."""
    return FeedService(db).get_feed(_viewer_id(current_user), scope, limit)


@router.get("/search", response_model=List[PostResponse])
async def search_posts(
    q: str = Query("", max_length=100, description="Text to look for in titles and captions"),
    db: Session = Depends(get_db),
    current_user: Optional[User] = Depends(get_optional_user)
):
    return FeedService(db).search_posts(q, _viewer_id(current_user))


@router.post("", response_model=PostResponse, status_code=status.HTTP_201_CREATED)
async def create_post(
    post_data: PostCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    post = PostService(db).create_post(current_user.id, post_data)
    return FeedService(db).get_post(post.id, current_user.id)


@router.get("/user/{user_id}", response_model=List[PostResponse])
async def get_user_posts(
    user_id: int = Path(..., description="Author ID"),
    db: Session = Depends(get_db),
    current_user: Optional[User] = Depends(get_optional_user)
):
    return FeedService(db).get_user_posts(user_id, _viewer_id(current_user))


@router.get("/{post_id}", response_model=PostResponse)
async def get_post(
    post_id: int = Path(..., description="Post ID"),
    db: Session = Depends(get_db),
    current_user: Optional[User] = Depends(get_optional_user)
):
    return FeedService(db).get_post(post_id, _viewer_id(current_user))


@router.delete("/{post_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_post(
    post_id: int = Path(..., description="Post ID"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    PostService(db).delete_post(current_user.id, post_id)


@router.post("/{post_id}/like", response_model=ToggleResponse)
async def toggle_like(
    post_id: int = Path(..., description="Post ID"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Like the post, or remove the like if it is already there."""
    active, count = PostService(db).toggle_like(current_user.id, post_id)
    return ToggleResponse(active=active, count=count)


@router.put("/{post_id}/like", response_model=ToggleResponse)
async def like_post(
    post_id: int = Path(..., description="Post ID"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return ToggleResponse(active=True, count=PostService(db).like(current_user.id, post_id))


@router.delete("/{post_id}/like", response_model=ToggleResponse)
async def unlike_post(
    post_id: int = Path(..., description="Post ID"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return ToggleResponse(active=False, count=PostService(db).unlike(current_user.id, post_id))


@router.post("/{post_id}/repost", response_model=ToggleResponse)
async def toggle_repost(
    post_id: int = Path(..., description="Post ID"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    active, count = PostService(db).toggle_repost(current_user.id, post_id)
    return ToggleResponse(active=active, count=count)


@router.get("/{post_id}/comments", response_model=List[CommentResponse])
async def get_comments(
    post_id: int = Path(..., description="Post ID"),
    db: Session = Depends(get_db)
):
    return PostService(db).list_comments(post_id)


@router.post("/{post_id}/comments", response_model=CommentResponse, status_code=status.HTTP_201_CREATED)
async def add_comment(
    comment_data: CommentCreate,
    post_id: int = Path(..., description="Post ID"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    service = PostService(db)
    comment = service.add_comment(current_user.id, post_id, comment_data.content)
    return CommentResponse(
        id=comment.id,
        post_id=comment.post_id,
        content=comment.content,
        created_at=comment.created_at,
        author=service.notifications.identity.display_identity(current_user.id),
    )


@router.post("/{post_id}/share", response_model=ShareResponse, status_code=status.HTTP_201_CREATED)
async def share_post(
    post_id: int = Path(..., description="Post ID"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    code, url = PostService(db).share_post(current_user.id, post_id)
    return ShareResponse(code=code, url=url)


@router.post("/{post_id}/play")
async def record_play(
    post_id: int = Path(..., description="Post ID"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return {"plays_count": PostService(db).record_play(current_user.id, post_id)}
