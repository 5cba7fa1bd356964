from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field

from models.post import PostType
from .user import DisplayIdentity


class PostCreate(BaseModel):
    """Schema for creating a new music post."""
    type: PostType = PostType.THOUGHT
    title: str = Field(..., min_length=1, max_length=255)
    content: str = Field("", max_length=5000)
    spotify_url: Optional[str] = Field(None, max_length=512)
    apple_music_url: Optional[str] = Field(None, max_length=512)
    youtube_url: Optional[str] = Field(None, max_length=512)
    tags: List[str] = Field(default_factory=list)

    class Config:
        json_schema_extra = {
            "example": {
                "type": "song",
                "title": "Windowlicker",
                "content": "Still sounds like the future",
                "youtube_url": "https://www.youtube.com/watch?v=5ZT3gTu4Sjw",
                "tags": ["electronic"]
            }
        }


class ListeningNow(BaseModel):
    track_title: Optional[str] = None
    started_at: Optional[datetime] = None


class PostAuthor(DisplayIdentity):
    listening_now: Optional[ListeningNow] = None


class PostResponse(BaseModel):
    """Post enriched for a specific viewer."""
    id: int
    type: PostType
    title: str
    content: str
    spotify_url: Optional[str] = None
    apple_music_url: Optional[str] = None
    youtube_url: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    likes_count: int = 0
    comments_count: int = 0
    reposts_count: int = 0
    plays_count: int = 0
    created_at: datetime
    author: PostAuthor
    is_liked: bool = False
    is_reposted: bool = False


class CommentCreate(BaseModel):
    content: str = Field(..., max_length=2000)


class CommentResponse(BaseModel):
    id: int
    post_id: int
    content: str
    created_at: datetime
    author: DisplayIdentity


class ToggleResponse(BaseModel):
    active: bool
    count: int


class ShareResponse(BaseModel):
    code: str
    url: str
