
# ============================================================================
# FILE: app/db/models/video.py
# ============================================================================
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Boolean, Float
from sqlalchemy.orm import relationship
from datetime import datetime
from app.db.base import Base

class Video(Base):
    """Uploaded video; unpublished videos are visible only to the owner"""
    __tablename__ = "videos"

    id = Column(Integer, primary_key=True, index=True)
    owner_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    title = Column(String(100), nullable=False)
    description = Column(String(1000), nullable=False)
    video_file = Column(String, nullable=False)  # Remote media URL
    thumbnail = Column(String, nullable=False)   # Remote image URL
    duration = Column(Float, default=0, nullable=False)
    views = Column(Integer, default=0, nullable=False)
    is_published = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    owner = relationship("User", back_populates="videos")
