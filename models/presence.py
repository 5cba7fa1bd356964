from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, Float

from database import Base, utcnow


class UserPresence(Base):
    """
    "Currently listening" state, one row per user.

    ``is_active`` is only the value stored at the last write; readers must
    also check ``last_seen_at`` against the inactivity window.
    """
    __tablename__ = 'user_presence'

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey('users.id', ondelete='CASCADE'), unique=True, nullable=False)
    current_track_id = Column(String(512), nullable=True)
    track_title = Column(String(255), nullable=True)
    track_url = Column(String(512), nullable=True)
    started_at = Column(DateTime, nullable=True)
    last_seen_at = Column(DateTime, default=utcnow, nullable=False)
    is_active = Column(Boolean, default=False, nullable=False)


class PlaybackState(Base):
    """Last known player state, used to resume the UI."""
    __tablename__ = 'playback_states'

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey('users.id', ondelete='CASCADE'), unique=True, nullable=False)
    track_url = Column(String(512), nullable=True)
    track_title = Column(String(255), nullable=True)
    track_thumbnail = Column(String(512), nullable=True)
    current_time = Column(Float, nullable=False, default=0)
    duration = Column(Float, nullable=False, default=0)
    is_playing = Column(Boolean, nullable=False, default=False)
    updated_at = Column(DateTime, default=utcnow, nullable=False)
