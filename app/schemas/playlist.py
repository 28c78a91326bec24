# ============================================================================
# FILE: app/schemas/playlist.py
# ============================================================================
from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime
from app.schemas.video import VideoResponse

class PlaylistCreate(BaseModel):
    """Schema for creating a playlist"""
    name: str = Field(..., min_length=1, max_length=100)
    description: str = Field("", max_length=500)
    is_public: bool = True

    class Config:
        str_strip_whitespace = True

class PlaylistUpdate(BaseModel):
    """Schema for updating a playlist"""
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    is_public: Optional[bool] = None

    class Config:
        str_strip_whitespace = True

class PlaylistResponse(BaseModel):
    """Schema for playlist response"""
    id: int
    owner_id: int
    name: str
    description: str
    is_public: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

class PlaylistDetail(PlaylistResponse):
    videos: List[VideoResponse] = []
    total_videos: int = 0
