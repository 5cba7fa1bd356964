from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel
from sqlalchemy.orm import Session

from database import get_db
from models.user import User
from routers.auth import get_current_user, get_optional_user
from schemas.follow import FollowEntry, FollowStatus
from schemas.user import FollowStats
from services.social_service import SocialService


# Pydantic model for the follow request body
class FollowRequest(BaseModel):
    followed_id: int


router = APIRouter(prefix="/api/relationships", tags=["Relationships"])


@router.post("/follow", status_code=status.HTTP_201_CREATED)
async def follow_user(
    follow_request: FollowRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    SocialService(db).follow(current_user.id, follow_request.followed_id)
    return {"message": f"Successfully followed user {follow_request.followed_id}"}


@router.delete("/unfollow/{followed_id}", status_code=status.HTTP_204_NO_CONTENT)
async def unfollow_user(
    followed_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    SocialService(db).unfollow(current_user.id, followed_id)


@router.get("/is-following/{user_id}", response_model=FollowStatus)
async def is_following(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: Optional[User] = Depends(get_optional_user)
):
    viewer_id = current_user.id if current_user else None
    return FollowStatus(following=SocialService(db).is_following(viewer_id, user_id))


@router.get("/followers", response_model=List[FollowEntry])
async def get_followers(
    user_id: int = Query(...),
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db)
):
    return SocialService(db).followers(user_id, skip, limit)


@router.get("/following", response_model=List[FollowEntry])
async def get_following(
    user_id: int = Query(...),
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db)
):
    return SocialService(db).following(user_id, skip, limit)


@router.get("/stats/{user_id}", response_model=FollowStats)
async def get_follow_stats(user_id: int, db: Session = Depends(get_db)):
    return SocialService(db).follow_stats(user_id)


@router.get("/recent-followers", response_model=List[FollowEntry])
async def get_recent_followers(
    within_days: int = Query(30, ge=1, le=365),
    db: Session = Depends(get_db),
    current_user: Optional[User] = Depends(get_optional_user)
):
    if current_user is None:
        return []
    return SocialService(db).recent_followers(current_user.id, within_days)
