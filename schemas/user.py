from typing import Optional
from pydantic import BaseModel


class DisplayIdentity(BaseModel):
    """Resolved display identity of a user."""
    id: int
    display_name: str
    avatar: Optional[str] = None
    avatar_url: Optional[str] = None


class FollowStats(BaseModel):
    followers_count: int
    following_count: int


class UserSearchResult(DisplayIdentity):
    bio: Optional[str] = None
