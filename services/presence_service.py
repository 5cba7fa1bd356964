import logging
from datetime import datetime, timedelta
from typing import Dict, Iterable, Optional

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from config import settings
from database import utcnow
from models.notification import NotificationType
from models.presence import UserPresence, PlaybackState
from schemas.presence import PresenceResponse
from services import group_keys
from services.notification_service import NotificationService

logger = logging.getLogger(__name__)


def inactivity_window() -> timedelta:
    return timedelta(seconds=settings.PRESENCE_INACTIVITY_SECONDS)


def is_still_active(presence: UserPresence, now: datetime) -> bool:
    """Stored flag AND seen within the inactivity window."""
    return bool(presence.is_active) and now - presence.last_seen_at <= inactivity_window()


class PresenceService:
    """
    Tracks what each user is listening to.

    Staleness is applied when reading: a record whose stored ``is_active``
    is still true but whose ``last_seen_at`` is older than the inactivity
    window is reported as inactive, and storage is left untouched.
    """

    def __init__(self, db: Session):
        self.db = db
        self.notifications = NotificationService(db)

    def report_playback(
        self,
        user_id: int,
        track_url: Optional[str],
        track_title: Optional[str],
        is_playing: bool,
        track_thumbnail: Optional[str] = None,
        current_time: float = 0,
        duration: float = 0,
        now: Optional[datetime] = None,
    ) -> PlaybackState:
        """
        Persist the player state, update presence and tell followers when
        the user starts a track.
        """
        if user_id is None:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Not authenticated"
            )
        now = now or utcnow()
        next_track = (track_url or "").strip() or None
        title = (track_title or "").strip() or None

        try:
            state = self.db.query(PlaybackState).filter(PlaybackState.user_id == user_id).first()
            presence = self.db.query(UserPresence).filter(UserPresence.user_id == user_id).first()
            # A record past the inactivity window counts as inactive even if its flags say playing
            was_active = presence is not None and is_still_active(presence, now)
            should_notify = bool(next_track) and is_playing and (
                state is None or state.track_url != next_track or not state.is_playing or not was_active
            )

            if state is None:
                state = PlaybackState(user_id=user_id)
                self.db.add(state)
            state.track_url = next_track
            state.track_title = title
            state.track_thumbnail = track_thumbnail
            state.current_time = current_time
            state.duration = duration
            state.is_playing = is_playing
            state.updated_at = now

            self._write_presence(presence, user_id, next_track, title, is_playing, was_active, now)

            if should_notify:
                self._notify_followers(user_id, next_track, title)

            self.db.commit()
            self.db.refresh(state)
            return state
        except Exception:
            self.db.rollback()
            raise

    def _write_presence(
        self,
        presence: Optional[UserPresence],
        user_id: int,
        track_id: Optional[str],
        title: Optional[str],
        is_playing: bool,
        was_active: bool,
        now: datetime,
    ) -> UserPresence:
        if presence is None:
            presence = UserPresence(user_id=user_id)
            self.db.add(presence)

        active = bool(track_id) and is_playing
        if active:
            # Continuous playback of the same track keeps its start time
            if not was_active or presence.started_at is None or presence.current_track_id != track_id:
                presence.started_at = now
            presence.current_track_id = track_id
            presence.track_url = track_id
            presence.track_title = title
        else:
            presence.current_track_id = None
            presence.track_url = None
            presence.track_title = None
            presence.started_at = None

        presence.is_active = active
        presence.last_seen_at = now
        return presence

    def _notify_followers(self, user_id: int, track_id: str, title: Optional[str]) -> int:
        followers = self.notifications.follower_ids(user_id)
        if not followers:
            return 0
        actor_name = self.notifications.identity.display_name(user_id)
        track_label = title or "a new track"
        for follower_id in followers:
            self.notifications.upsert_notification(
                recipient_id=follower_id,
                actor_id=user_id,
                profile_id=user_id,
                type=NotificationType.FRIEND_LISTENING,
                message=f"{actor_name} started listening to {track_label}",
                group_key=group_keys.friend_listening(user_id, track_id),
            )
        logger.debug(f"User {user_id} started {track_id}; notified {len(followers)} followers")
        return len(followers)

    def get_presence(self, user_id: int, now: Optional[datetime] = None) -> Optional[PresenceResponse]:
        presence = self.db.query(UserPresence).filter(UserPresence.user_id == user_id).first()
        if presence is None:
            return None
        return self._to_response(presence, now or utcnow())

    def get_presences(self, user_ids: Iterable[int], now: Optional[datetime] = None) -> Dict[int, PresenceResponse]:
        ids = set(user_ids)
        if not ids:
            return {}
        now = now or utcnow()
        rows = self.db.query(UserPresence).filter(UserPresence.user_id.in_(ids)).all()
        return {row.user_id: self._to_response(row, now) for row in rows}

    @staticmethod
    def _to_response(presence: UserPresence, now: datetime) -> PresenceResponse:
        still_active = is_still_active(presence, now)
        return PresenceResponse(
            user_id=presence.user_id,
            is_active=still_active,
            is_stale=bool(presence.is_active) and not still_active,
            track_title=presence.track_title,
            track_url=presence.track_url,
            started_at=presence.started_at,
            last_seen_at=presence.last_seen_at,
        )

    def get_playback_state(self, user_id: Optional[int]) -> Optional[PlaybackState]:
        if user_id is None:
            return None
        return self.db.query(PlaybackState).filter(PlaybackState.user_id == user_id).first()
