from sqlalchemy import Column, Integer, ForeignKey, DateTime

from database import Base, utcnow


class Follower(Base):
    """Association table for followers/following relationships."""
    __tablename__ = 'followers'

    follower_id = Column(Integer, ForeignKey('users.id', ondelete='CASCADE'), primary_key=True)
    followed_id = Column(Integer, ForeignKey('users.id', ondelete='CASCADE'), primary_key=True, index=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    def __repr__(self):
        return f"<Follower {self.follower_id} -> {self.followed_id}>"
