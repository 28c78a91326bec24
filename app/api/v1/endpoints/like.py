# ============================================================================
# FILE: app/api/v1/endpoints/like.py
# ============================================================================
from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from app.db.session import get_db
from app.api.dependencies import require_current_user
from app.schemas.video import VideoWithOwner
from app.services.like_service import like_service
from app.core.responses import api_response
from app.db.models.user import User
from app.utils.pagination import paginated
import logging

logger = logging.getLogger(__name__)
router = APIRouter()

def _toggle_response(target: str, liked: bool, like) -> JSONResponse:
    if liked:
        return api_response(
            status.HTTP_201_CREATED,
            {"is_liked": True, "like_id": like.id},
            f"{target.capitalize()} liked successfully.",
        )
    return api_response(
        status.HTTP_200_OK,
        {"is_liked": False},
        f"{target.capitalize()} unliked successfully.",
    )

@router.post("/toggle/video/{video_id}")
async def toggle_video_like(
    video_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_current_user)
):
    liked, like = like_service.toggle_video_like(db, current_user, video_id)
    return _toggle_response("video", liked, like)

@router.post("/toggle/comment/{comment_id}")
async def toggle_comment_like(
    comment_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_current_user)
):
    liked, like = like_service.toggle_comment_like(db, current_user, comment_id)
    return _toggle_response("comment", liked, like)

@router.post("/toggle/tweet/{tweet_id}")
async def toggle_tweet_like(
    tweet_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_current_user)
):
    liked, like = like_service.toggle_tweet_like(db, current_user, tweet_id)
    return _toggle_response("tweet", liked, like)

@router.get("/videos")
async def get_liked_videos(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=50),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_current_user)
):
    videos, total = like_service.get_liked_videos(db, current_user, page, limit)
    return api_response(
        status.HTTP_200_OK,
        paginated("videos", [VideoWithOwner.model_validate(v) for v in videos], total, page, limit),
        "Liked videos fetched successfully.",
    )
