# ============================================================================
# FILE: app/api/v1/endpoints/comment.py
# ============================================================================
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from app.db.session import get_db
from app.api.dependencies import get_current_user, require_current_user
from app.schemas.comment import CommentCreate, CommentResponse, CommentWithOwner
from app.services.comment_service import comment_service
from app.core.responses import api_response
from app.db.models.user import User
from app.utils.pagination import paginated
from typing import Optional
import logging

logger = logging.getLogger(__name__)
router = APIRouter()

@router.get("/{video_id}")
async def get_video_comments(
    video_id: int,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    sort_by: str = Query("createdAt", alias="sortBy", pattern="^(createdAt|updatedAt)$"),
    sort_type: str = Query("desc", alias="sortType", pattern="^(asc|desc)$"),
    db: Session = Depends(get_db),
    current_user: Optional[User] = Depends(get_current_user)
):
    rows, total = comment_service.list_comments(
        db, video_id, current_user, page, limit, sort_by, sort_type
    )
    comments = [
        CommentWithOwner.model_validate(row["comment"]).model_copy(
            update={"likes_count": row["likes_count"], "is_liked": row["is_liked"]}
        )
        for row in rows
    ]
    return api_response(
        status.HTTP_200_OK,
        paginated("comments", comments, total, page, limit),
        "Comments fetched successfully.",
    )

@router.post("/{video_id}", status_code=status.HTTP_201_CREATED)
async def add_comment(
    video_id: int,
    payload: CommentCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_current_user)
):
    comment = comment_service.add_comment(db, current_user, video_id, payload.content)
    return api_response(
        status.HTTP_201_CREATED,
        CommentResponse.model_validate(comment),
        "Comment added successfully.",
    )

@router.patch("/id/{comment_id}")
async def update_comment(
    comment_id: int,
    payload: CommentCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_current_user)
):
    comment = comment_service.update_comment(db, current_user, comment_id, payload.content)
    return api_response(
        status.HTTP_200_OK,
        CommentResponse.model_validate(comment),
        "Comment updated successfully.",
    )

@router.delete("/id/{comment_id}")
async def delete_comment(
    comment_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_current_user)
):
    """Comment authors and the owner of the video may delete"""
    comment_service.delete_comment(db, current_user, comment_id)
    return api_response(status.HTTP_200_OK, {}, "Comment deleted successfully.")
