
# ============================================================================
# FILE: app/db/models/like.py
# ============================================================================
from sqlalchemy import Column, Integer, DateTime, ForeignKey, CheckConstraint, UniqueConstraint
from datetime import datetime
from app.db.base import Base

class Like(Base):
    """Reaction from one user to exactly one video, comment or tweet"""
    __tablename__ = "likes"
    __table_args__ = (
        CheckConstraint(
            "(CASE WHEN video_id IS NOT NULL THEN 1 ELSE 0 END)"
            " + (CASE WHEN comment_id IS NOT NULL THEN 1 ELSE 0 END)"
            " + (CASE WHEN tweet_id IS NOT NULL THEN 1 ELSE 0 END) = 1",
            name="ck_likes_single_target",
        ),
        UniqueConstraint("liked_by_id", "video_id", name="uq_likes_user_video"),
        UniqueConstraint("liked_by_id", "comment_id", name="uq_likes_user_comment"),
        UniqueConstraint("liked_by_id", "tweet_id", name="uq_likes_user_tweet"),
    )

    id = Column(Integer, primary_key=True, index=True)
    liked_by_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    video_id = Column(Integer, ForeignKey("videos.id"), nullable=True, index=True)
    comment_id = Column(Integer, ForeignKey("comments.id"), nullable=True, index=True)
    tweet_id = Column(Integer, ForeignKey("tweets.id"), nullable=True, index=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
