# ============================================================================
# FILE: app/schemas/video.py
# ============================================================================
from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime
from app.schemas.user import OwnerSummary

class VideoCreate(BaseModel):
    """Metadata accepted alongside the uploaded files"""
    title: str = Field(..., min_length=1, max_length=100)
    description: str = Field(..., min_length=1, max_length=1000)

    class Config:
        str_strip_whitespace = True

class VideoUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, min_length=1, max_length=1000)

    class Config:
        str_strip_whitespace = True

class VideoResponse(BaseModel):
    """Schema for video response"""
    id: int
    owner_id: int
    title: str
    description: str
    video_file: str
    thumbnail: str
    duration: float
    views: int
    is_published: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

class VideoWithOwner(VideoResponse):
    owner: OwnerSummary

class VideoListItem(VideoWithOwner):
    likes_count: int = 0

class VideoDetail(VideoWithOwner):
    """Single video with reaction summary for the viewer"""
    likes_count: int = 0
    is_liked: bool = False
    subscriber_count: int = 0

class PublishToggleResponse(BaseModel):
    video: VideoResponse
    previous_status: bool
    current_status: bool
