
# ============================================================================
# FILE: app/db/models/user.py
# ============================================================================
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from datetime import datetime
from app.db.base import Base

class User(Base):
    """Account model; doubles as the user's channel"""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(50), unique=True, index=True, nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    full_name = Column(String(100), nullable=False)
    avatar = Column(String, nullable=True)
    cover_image = Column(String, nullable=True)
    hashed_password = Column(String, nullable=False)
    # SHA-256 digest of the single active refresh token
    refresh_token_hash = Column(String(64), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    videos = relationship("Video", back_populates="owner")
    watch_history = relationship(
        "WatchHistory",
        back_populates="user",
        cascade="all, delete-orphan",
        order_by="desc(WatchHistory.watched_at)",
    )

    def __repr__(self):
        return f"<User id={self.id} username={self.username}>"

class WatchHistory(Base):
    """Videos watched by a user, one row per (user, video)"""
    __tablename__ = "watch_history"
    __table_args__ = (UniqueConstraint("user_id", "video_id", name="uq_watch_history_user_video"),)

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    video_id = Column(Integer, ForeignKey("videos.id"), nullable=False, index=True)
    watched_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    # Relationships
    user = relationship("User", back_populates="watch_history")
    video = relationship("Video")
