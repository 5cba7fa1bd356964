from sqlalchemy import Column, Integer, DateTime, ForeignKey

from database import Base, utcnow


class GrowthOnboarding(Base):
    """Tracks whether the seed accounts already welcomed a user."""
    __tablename__ = 'growth_onboarding'

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey('users.id', ondelete='CASCADE'), unique=True, nullable=False)
    seed_followed_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)
