# ============================================================================
# FILE: app/schemas/tweet.py
# ============================================================================
from pydantic import BaseModel, Field
from datetime import datetime
from app.schemas.user import OwnerSummary

class TweetCreate(BaseModel):
    content: str = Field(..., min_length=1, max_length=280)

    class Config:
        str_strip_whitespace = True

class TweetResponse(BaseModel):
    id: int
    content: str
    owner_id: int
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

class TweetWithOwner(TweetResponse):
    owner: OwnerSummary
    likes_count: int = 0
