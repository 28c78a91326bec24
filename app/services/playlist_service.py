# ============================================================================
# FILE: app/services/playlist_service.py
# ============================================================================
from typing import List, Optional
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
from app.db.models.user import User
from app.db.models.video import Video
from app.db.models.playlist import Playlist, PlaylistVideo
from app.schemas.playlist import PlaylistCreate, PlaylistUpdate
from app.core.exceptions import (
    BadRequestError,
    ConflictError,
    ForbiddenError,
    InternalServerError,
    NotFoundError,
)
from app.core.permissions import is_owner
import logging

logger = logging.getLogger(__name__)

class PlaylistService:
    """Service layer for playlist operations"""

    def create_playlist(self, db: Session, user: User, playlist_data: PlaylistCreate) -> Playlist:
        """Create a new playlist for a user"""
        try:
            playlist = Playlist(
                owner_id=user.id,
                name=playlist_data.name,
                description=playlist_data.description,
                is_public=playlist_data.is_public,
            )
            db.add(playlist)
            db.commit()
            db.refresh(playlist)
            logger.info(f"Playlist created: {playlist.id} for user {user.id}")
            return playlist
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Error creating playlist: {e}")
            raise InternalServerError("Something went wrong while creating the playlist.")

    def get_user_playlists(self, db: Session, user_id: int, viewer: Optional[User]) -> List[Playlist]:
        """Get a user's playlists; other viewers only see public ones"""
        if not db.query(User.id).filter(User.id == user_id).first():
            raise NotFoundError("User not found.")

        query = db.query(Playlist).filter(Playlist.owner_id == user_id)
        if not is_owner(user_id, viewer):
            query = query.filter(Playlist.is_public.is_(True))
        return query.order_by(Playlist.created_at.desc(), Playlist.id.desc()).all()

    def get_playlist(self, db: Session, playlist_id: int, viewer: Optional[User]) -> Playlist:
        """Get a specific playlist (private playlists only for the owner)"""
        playlist = db.query(Playlist).filter(Playlist.id == playlist_id).first()
        if not playlist:
            raise NotFoundError("Playlist not found.")
        if not playlist.is_public and not is_owner(playlist.owner_id, viewer):
            raise ForbiddenError("This playlist is private.")
        return playlist

    def get_own_playlist(self, db: Session, playlist_id: int, user: User) -> Playlist:
        playlist = db.query(Playlist).filter(Playlist.id == playlist_id).first()
        if not playlist:
            raise NotFoundError("Playlist not found.")
        if not is_owner(playlist.owner_id, user):
            raise ForbiddenError("You can only modify your own playlists.")
        return playlist

    def visible_videos(self, playlist: Playlist, viewer: Optional[User]) -> List[Video]:
        """Playlist entries in insertion order, hiding other owners' unpublished videos"""
        return [
            video for video in playlist.videos
            if video is not None and (video.is_published or is_owner(video.owner_id, viewer))
        ]

    def update_playlist(self, db: Session, playlist_id: int, user: User, update_data: PlaylistUpdate) -> Playlist:
        """Update playlist details"""
        playlist = self.get_own_playlist(db, playlist_id, user)
        if update_data.name is None and update_data.description is None and update_data.is_public is None:
            raise BadRequestError("Nothing to update.")

        try:
            if update_data.name is not None:
                playlist.name = update_data.name
            if update_data.description is not None:
                playlist.description = update_data.description
            if update_data.is_public is not None:
                playlist.is_public = update_data.is_public

            db.commit()
            db.refresh(playlist)
            logger.info(f"Playlist updated: {playlist_id}")
            return playlist
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Error updating playlist: {e}")
            raise InternalServerError("Something went wrong while updating the playlist.")

    def delete_playlist(self, db: Session, playlist_id: int, user: User) -> None:
        """Delete a playlist"""
        playlist = self.get_own_playlist(db, playlist_id, user)
        try:
            db.delete(playlist)
            db.commit()
            logger.info(f"Playlist deleted: {playlist_id}")
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Error deleting playlist: {e}")
            raise InternalServerError("Something went wrong while deleting the playlist.")

    def add_video_to_playlist(self, db: Session, playlist_id: int, user: User, video_id: int) -> Playlist:
        """Append a published video to a playlist"""
        playlist = self.get_own_playlist(db, playlist_id, user)

        video = db.query(Video).filter(Video.id == video_id).first()
        if not video or (not video.is_published and not is_owner(video.owner_id, user)):
            raise NotFoundError("Video not found.")
        if not video.is_published:
            raise BadRequestError("Only published videos can be added to a playlist.")

        # Check if video already exists in playlist
        existing = db.query(PlaylistVideo).filter(
            PlaylistVideo.playlist_id == playlist_id,
            PlaylistVideo.video_id == video_id
        ).first()
        if existing:
            raise ConflictError("Video is already in the playlist.")

        try:
            db.add(PlaylistVideo(playlist_id=playlist_id, video_id=video_id))
            db.commit()
            db.refresh(playlist)
            logger.info(f"Video added to playlist {playlist_id}: {video_id}")
            return playlist
        except IntegrityError:
            db.rollback()
            raise ConflictError("Video is already in the playlist.")
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Error adding video to playlist: {e}")
            raise InternalServerError("Something went wrong while adding the video.")

    def remove_video_from_playlist(self, db: Session, playlist_id: int, user: User, video_id: int) -> Playlist:
        """Remove a video from a playlist"""
        playlist = self.get_own_playlist(db, playlist_id, user)

        entry = db.query(PlaylistVideo).filter(
            PlaylistVideo.playlist_id == playlist_id,
            PlaylistVideo.video_id == video_id
        ).first()
        if not entry:
            raise NotFoundError("Video not found in playlist.")

        try:
            db.delete(entry)
            db.commit()
            db.refresh(playlist)
            logger.info(f"Video removed from playlist {playlist_id}: {video_id}")
            return playlist
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Error removing video from playlist: {e}")
            raise InternalServerError("Something went wrong while removing the video.")

# Create singleton instance
playlist_service = PlaylistService()
