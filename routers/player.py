from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from database import get_db
from models.user import User
from routers.auth import get_current_user, get_optional_user
from schemas.presence import PlaybackReport, PlaybackStateResponse, PresenceResponse
from services.presence_service import PresenceService

router = APIRouter(prefix="/api/player", tags=["Player"])


@router.put("/state", response_model=PlaybackStateResponse)
async def report_playback(
    report: PlaybackReport,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Save the player state; starting a track tells followers what is playing."""
    return PresenceService(db).report_playback(
        current_user.id,
        track_url=report.track_url,
        track_title=report.track_title,
        is_playing=report.is_playing,
        track_thumbnail=report.track_thumbnail,
        current_time=report.current_time,
        duration=report.duration,
    )


@router.get("/state", response_model=Optional[PlaybackStateResponse])
async def get_playback_state(
    db: Session = Depends(get_db),
    current_user: Optional[User] = Depends(get_optional_user)
):
    user_id = current_user.id if current_user else None
    return PresenceService(db).get_playback_state(user_id)


@router.get("/presence/{user_id}", response_model=PresenceResponse)
async def get_user_presence(user_id: int, db: Session = Depends(get_db)):
    presence = PresenceService(db).get_presence(user_id)
    if presence is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No presence recorded for this user"
        )
    return presence
