# ============================================================================
# FILE: app/api/v1/endpoints/dashboard.py
# ============================================================================
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from app.db.session import get_db
from app.api.dependencies import require_current_user
from app.schemas.video import VideoListItem
from app.services.dashboard_service import dashboard_service
from app.core.responses import api_response
from app.db.models.user import User

router = APIRouter()

@router.get("/stats")
async def get_channel_stats(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_current_user)
):
    """Views, subscribers, videos and likes of the current user's channel"""
    stats = dashboard_service.get_channel_stats(db, current_user)
    return api_response(status.HTTP_200_OK, stats, "Channel stats fetched successfully.")

@router.get("/videos")
async def get_channel_videos(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_current_user)
):
    rows = dashboard_service.get_channel_videos(db, current_user)
    videos = [
        VideoListItem.model_validate(video).model_copy(update={"likes_count": likes})
        for video, likes in rows
    ]
    return api_response(status.HTTP_200_OK, videos, "Channel videos fetched successfully.")
