from enum import Enum as PyEnum
from typing import TYPE_CHECKING
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Text, Enum, JSON
from sqlalchemy.orm import relationship

from database import Base, utcnow

# Import for type checking to avoid circular imports
if TYPE_CHECKING:
    from models.user import User
    from models.comment import Comment


class PostType(str, PyEnum):
    SONG = "song"
    PLAYLIST = "playlist"
    THOUGHT = "thought"


class Post(Base):
    """A shared song, playlist or thought with denormalized engagement counters."""

    __tablename__ = 'posts'

    id = Column(Integer, primary_key=True, index=True)
    author_id = Column(Integer, ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True)
    type = Column(Enum(PostType, name='post_type_enum', values_callable=lambda e: [m.value for m in e]),
                  nullable=False, default=PostType.THOUGHT)
    title = Column(String(255), nullable=False)
    content = Column(Text, nullable=False, default="")
    spotify_url = Column(String(512), nullable=True)
    apple_music_url = Column(String(512), nullable=True)
    youtube_url = Column(String(512), nullable=True)
    tags = Column(JSON, nullable=False, default=list)

    # Counters move together with their join-table rows, never recounted on read
    likes_count = Column(Integer, nullable=False, default=0)
    comments_count = Column(Integer, nullable=False, default=0)
    reposts_count = Column(Integer, nullable=False, default=0)
    plays_count = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)

    author = relationship(
        'User',
        back_populates='posts',
        doc="User who created this post"
    )
    likes = relationship(
        'Like',
        back_populates='post',
        cascade='all, delete-orphan'
    )
    reposts = relationship(
        'Repost',
        back_populates='post',
        cascade='all, delete-orphan'
    )
    comments = relationship(
        'Comment',
        back_populates='post',
        cascade='all, delete-orphan'
    )
    shares = relationship(
        'PostShare',
        back_populates='post',
        cascade='all, delete-orphan'
    )

    def __repr__(self) -> str:
        return f"<Post {self.id} by User {self.author_id}>"
