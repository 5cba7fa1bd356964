from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field


class PlaybackReport(BaseModel):
    """Player state reported by the client."""
    track_url: Optional[str] = Field(None, max_length=512)
    track_title: Optional[str] = Field(None, max_length=255)
    track_thumbnail: Optional[str] = Field(None, max_length=512)
    current_time: float = Field(0, ge=0)
    duration: float = Field(0, ge=0)
    is_playing: bool


class PlaybackStateResponse(BaseModel):
    track_url: Optional[str] = None
    track_title: Optional[str] = None
    track_thumbnail: Optional[str] = None
    current_time: float = 0
    duration: float = 0
    is_playing: bool = False
    updated_at: datetime

    class Config:
        from_attributes = True


class PresenceResponse(BaseModel):
    """Presence with staleness already applied."""
    user_id: int
    is_active: bool
    is_stale: bool = False
    track_title: Optional[str] = None
    track_url: Optional[str] = None
    started_at: Optional[datetime] = None
    last_seen_at: datetime
