# ============================================================================
# FILE: app/api/v1/endpoints/video.py
# ============================================================================
from fastapi import APIRouter, Depends, Form, Query, status
from pydantic import ValidationError
from sqlalchemy.orm import Session
from app.db.session import get_db
from app.api.dependencies import get_current_user, get_storage, require_current_user
from app.api.uploads import IMAGE_KIND, VIDEO_KIND, FieldSpec, StagedUploads, UploadFields
from app.schemas.video import (
    PublishToggleResponse,
    VideoCreate,
    VideoDetail,
    VideoListItem,
    VideoResponse,
    VideoUpdate,
    VideoWithOwner,
)
from app.services.video_service import video_service
from app.services.upload_service import compensate_on_failure, discard_quietly, discard_urls, transfer
from app.core.exceptions import BadRequestError, validation_messages
from app.core.responses import api_response
from app.core.storage import IMAGE, StorageClient
from app.db.models.user import User
from app.utils.pagination import paginated
from typing import Optional
import logging

logger = logging.getLogger(__name__)
router = APIRouter()

video_uploads = UploadFields(
    {
        "video_file": FieldSpec(VIDEO_KIND, "Video"),
        "thumbnail": FieldSpec(IMAGE_KIND, "Thumbnail"),
    },
    required=("video_file", "thumbnail"),
)
thumbnail_upload = UploadFields({"thumbnail": FieldSpec(IMAGE_KIND, "Thumbnail")})

@router.get("")
async def get_all_videos(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    keyword: Optional[str] = Query(None, max_length=100),
    sort_by: str = Query("createdAt", alias="sortBy", pattern="^(createdAt|views|likesCount)$"),
    sort_type: str = Query("desc", alias="sortType", pattern="^(asc|desc)$"),
    user_id: Optional[int] = Query(None, alias="userId", ge=1),
    db: Session = Depends(get_db),
    current_user: Optional[User] = Depends(get_current_user)
):
    """
    Published videos with search, sorting and pagination
    Passing your own userId also lists your unpublished videos
    """
    rows, total = video_service.list_videos(
        db, current_user, page, limit, keyword, sort_by, sort_type, user_id
    )
    videos = [
        VideoListItem.model_validate(video).model_copy(update={"likes_count": likes})
        for video, likes in rows
    ]
    return api_response(
        status.HTTP_200_OK,
        paginated("videos", videos, total, page, limit),
        "Videos fetched successfully.",
    )

@router.post("", status_code=status.HTTP_201_CREATED)
async def publish_video(
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    current_user: User = Depends(require_current_user),
    staged: StagedUploads = Depends(video_uploads),
    db: Session = Depends(get_db),
    storage: StorageClient = Depends(get_storage),
):
    """
    Upload a video with its thumbnail
    New videos start unpublished
    """
    try:
        metadata = VideoCreate(title=title or "", description=description or "")
    except ValidationError as e:
        raise BadRequestError("Title and description are required.", errors=validation_messages(e.errors()))

    media = await transfer(storage, staged)
    async with compensate_on_failure(storage, media):
        video = video_service.create_video(
            db,
            current_user,
            metadata.title,
            metadata.description,
            media["video_file"],
            media["thumbnail"],
        )

    return api_response(
        status.HTTP_201_CREATED,
        VideoResponse.model_validate(video),
        "Video uploaded successfully.",
    )

@router.get("/{video_id}")
async def get_video_by_id(
    video_id: int,
    db: Session = Depends(get_db),
    current_user: Optional[User] = Depends(get_current_user)
):
    detail = video_service.get_video_detail(db, video_id, current_user)
    video = detail.pop("video")
    return api_response(
        status.HTTP_200_OK,
        VideoDetail.model_validate(video).model_copy(update=detail),
        "Video fetched successfully.",
    )

@router.patch("/toggle/publish/{video_id}")
async def toggle_publish_status(
    video_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_current_user)
):
    video = video_service.get_owned_video(db, video_id, current_user)
    result = video_service.toggle_publish(db, video)
    return api_response(
        status.HTTP_200_OK,
        PublishToggleResponse(
            video=VideoResponse.model_validate(result["video"]),
            previous_status=result["previous_status"],
            current_status=result["current_status"],
        ),
        "Video publish status updated successfully.",
    )

@router.patch("/{video_id}")
async def update_video(
    video_id: int,
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    current_user: User = Depends(require_current_user),
    staged: StagedUploads = Depends(thumbnail_upload),
    db: Session = Depends(get_db),
    storage: StorageClient = Depends(get_storage),
):
    """
    Update title/description and/or replace the thumbnail
    Only the owner may update; the old thumbnail is removed afterwards
    """
    video = video_service.get_owned_video(db, video_id, current_user)

    try:
        changes = VideoUpdate(title=title, description=description)
    except ValidationError as e:
        raise BadRequestError("Invalid video details.", errors=validation_messages(e.errors()))
    if changes.title is None and changes.description is None and "thumbnail" not in staged:
        raise BadRequestError("Provide a title, description or thumbnail to update.")

    media = await transfer(storage, staged)
    async with compensate_on_failure(storage, media):
        video, previous_thumbnail = video_service.update_video(
            db,
            video,
            title=changes.title,
            description=changes.description,
            thumbnail_url=media["thumbnail"].url if "thumbnail" in media else None,
        )
    if previous_thumbnail:
        await discard_quietly(storage, previous_thumbnail, IMAGE)

    return api_response(
        status.HTTP_200_OK,
        VideoWithOwner.model_validate(video),
        "Video updated successfully.",
    )

@router.delete("/{video_id}")
async def delete_video(
    video_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_current_user),
    storage: StorageClient = Depends(get_storage),
):
    """
    Delete a video with its comments, likes and playlist entries
    Only the owner may delete
    """
    video = video_service.get_owned_video(db, video_id, current_user)
    media = video_service.delete_video(db, video)
    await discard_urls(storage, media)
    return api_response(status.HTTP_200_OK, {}, "Video deleted successfully.")
