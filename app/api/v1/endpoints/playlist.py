# ============================================================================
# FILE: app/api/v1/endpoints/playlist.py
# ============================================================================
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import Optional
from app.db.session import get_db
from app.api.dependencies import require_current_user
from app.schemas.playlist import (
    PlaylistCreate,
    PlaylistDetail,
    PlaylistResponse,
    PlaylistUpdate,
)
from app.schemas.video import VideoResponse
from app.services.playlist_service import playlist_service
from app.core.responses import api_response
from app.db.models.playlist import Playlist
from app.db.models.user import User
import logging

logger = logging.getLogger(__name__)
router = APIRouter()

def _detail(playlist: Playlist, viewer: Optional[User]) -> PlaylistDetail:
    videos = [VideoResponse.model_validate(v) for v in playlist_service.visible_videos(playlist, viewer)]
    return PlaylistDetail(
        **PlaylistResponse.model_validate(playlist).model_dump(),
        videos=videos,
        total_videos=len(videos),
    )

@router.post("", status_code=status.HTTP_201_CREATED)
async def create_playlist(
    playlist_data: PlaylistCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_current_user)
):
    """
    Create a new playlist
    Requires authentication
    """
    playlist = playlist_service.create_playlist(db, current_user, playlist_data)
    return api_response(
        status.HTTP_201_CREATED,
        PlaylistResponse.model_validate(playlist),
        "Playlist created successfully.",
    )

@router.get("/user/{user_id}")
async def get_user_playlists(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_current_user)
):
    """
    Get a user's playlists
    Private playlists are listed only for their owner
    """
    playlists = playlist_service.get_user_playlists(db, user_id, current_user)
    return api_response(
        status.HTTP_200_OK,
        [_detail(playlist, current_user) for playlist in playlists],
        "Playlists fetched successfully.",
    )

@router.get("/{playlist_id}")
async def get_playlist(
    playlist_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_current_user)
):
    """
    Get a specific playlist with its videos
    Private playlists are visible to the owner only
    """
    playlist = playlist_service.get_playlist(db, playlist_id, current_user)
    return api_response(status.HTTP_200_OK, _detail(playlist, current_user), "Playlist fetched successfully.")

@router.patch("/add/{video_id}/{playlist_id}")
async def add_video_to_playlist(
    video_id: int,
    playlist_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_current_user)
):
    """
    Add a video to a playlist
    Requires authentication and ownership
    """
    playlist = playlist_service.add_video_to_playlist(db, playlist_id, current_user, video_id)
    return api_response(status.HTTP_200_OK, _detail(playlist, current_user), "Video added to playlist.")

@router.patch("/remove/{video_id}/{playlist_id}")
async def remove_video_from_playlist(
    video_id: int,
    playlist_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_current_user)
):
    """
    Remove a video from a playlist
    Requires authentication and ownership
    """
    playlist = playlist_service.remove_video_from_playlist(db, playlist_id, current_user, video_id)
    return api_response(status.HTTP_200_OK, _detail(playlist, current_user), "Video removed from playlist.")

@router.patch("/{playlist_id}")
async def update_playlist(
    playlist_id: int,
    update_data: PlaylistUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_current_user)
):
    """
    Update playlist details (name, description, visibility)
    Requires authentication and ownership
    """
    playlist = playlist_service.update_playlist(db, playlist_id, current_user, update_data)
    return api_response(
        status.HTTP_200_OK,
        PlaylistResponse.model_validate(playlist),
        "Playlist updated successfully.",
    )

@router.delete("/{playlist_id}")
async def delete_playlist(
    playlist_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_current_user)
):
    """
    Delete a playlist
    Requires authentication and ownership
    """
    playlist_service.delete_playlist(db, playlist_id, current_user)
    return api_response(status.HTTP_200_OK, {}, "Playlist deleted successfully.")
