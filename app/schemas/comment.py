# ============================================================================
# FILE: app/schemas/comment.py
# ============================================================================
from pydantic import BaseModel, Field
from datetime import datetime
from app.schemas.user import OwnerSummary

class CommentCreate(BaseModel):
    content: str = Field(..., min_length=1, max_length=1000)

    class Config:
        str_strip_whitespace = True

class CommentResponse(BaseModel):
    id: int
    content: str
    video_id: int
    owner_id: int
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

class CommentWithOwner(CommentResponse):
    owner: OwnerSummary
    likes_count: int = 0
    is_liked: bool = False
