from pydantic import BaseModel
from datetime import datetime

from .user import DisplayIdentity


class FollowEntry(BaseModel):
    """A follower or followee with its display identity."""
    user: DisplayIdentity
    followed_at: datetime


class FollowStatus(BaseModel):
    following: bool


class SeedWelcomeResult(BaseModel):
    skipped: bool = False
    reason: str | None = None
    followed_count: int = 0
