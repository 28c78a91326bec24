# ============================================================================
# FILE: app/services/video_service.py
# ============================================================================
from typing import List, Optional, Tuple
from sqlalchemy import func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload
from app.db.models.user import User, WatchHistory
from app.db.models.video import Video
from app.db.models.comment import Comment
from app.db.models.like import Like
from app.db.models.subscription import Subscription
from app.db.models.playlist import PlaylistVideo
from app.core.exceptions import ForbiddenError, InternalServerError, NotFoundError
from app.core.permissions import is_owner
from app.core.storage import IMAGE, VIDEO, StoredMedia
from app.services.user_service import user_service
from app.utils.pagination import offset_for
import logging

logger = logging.getLogger(__name__)

SORT_FIELDS = ("createdAt", "views", "likesCount")


def escape_like(term: str) -> str:
    """Make % and _ match literally in a LIKE pattern escaped with a backslash"""
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def likes_count_column():
    """Correlated count of likes per video, usable as a query column"""
    return (
        select(func.count(Like.id))
        .where(Like.video_id == Video.id)
        .correlate(Video)
        .scalar_subquery()
        .label("likes_count")
    )


class VideoService:
    """Service layer for video operations"""

    def get_visible_video(self, db: Session, video_id: int, viewer: Optional[User]) -> Video:
        """
        Load a video the caller may see

        Unpublished videos of other accounts are reported as missing.
        """
        video = db.query(Video).filter(Video.id == video_id).first()
        if not video or (not video.is_published and not is_owner(video.owner_id, viewer)):
            raise NotFoundError("Video not found.")
        return video

    def get_owned_video(self, db: Session, video_id: int, user: User) -> Video:
        """Load a video for mutation: 404 when hidden, 403 when someone else's"""
        video = self.get_visible_video(db, video_id, user)
        if not is_owner(video.owner_id, user):
            raise ForbiddenError("You are not allowed to modify this video.")
        return video

    def list_videos(
        self,
        db: Session,
        viewer: Optional[User],
        page: int = 1,
        limit: int = 10,
        keyword: Optional[str] = None,
        sort_by: str = "createdAt",
        sort_type: str = "desc",
        user_id: Optional[int] = None,
    ) -> Tuple[List[Tuple[Video, int]], int]:
        """
        Published videos, optionally filtered by owner and keyword

        When user_id is the caller, their unpublished videos are included.
        """
        filters = []
        if user_id is not None:
            filters.append(Video.owner_id == user_id)
        if user_id is None or not is_owner(user_id, viewer):
            filters.append(Video.is_published.is_(True))
        if keyword and keyword.strip():
            pattern = f"%{escape_like(keyword.strip())}%"
            filters.append(or_(
                Video.title.ilike(pattern, escape="\\"),
                Video.description.ilike(pattern, escape="\\"),
            ))

        total = db.query(func.count(Video.id)).filter(*filters).scalar() or 0

        likes_count = likes_count_column()
        sort_column = {
            "createdAt": Video.created_at,
            "views": Video.views,
            "likesCount": likes_count,
        }.get(sort_by, Video.created_at)
        if sort_type == "asc":
            order = (sort_column.asc(), Video.id.asc())
        else:
            order = (sort_column.desc(), Video.id.desc())

        rows = (
            db.query(Video, likes_count)
            .options(joinedload(Video.owner))
            .filter(*filters)
            .order_by(*order)
            .offset(offset_for(page, limit))
            .limit(limit)
            .all()
        )
        return [(video, count or 0) for video, count in rows], total

    def create_video(
        self,
        db: Session,
        owner: User,
        title: str,
        description: str,
        video_media: StoredMedia,
        thumbnail_media: StoredMedia,
    ) -> Video:
        """Persist a freshly uploaded video (starts unpublished)"""
        try:
            video = Video(
                owner_id=owner.id,
                title=title,
                description=description,
                video_file=video_media.url,
                thumbnail=thumbnail_media.url,
                duration=video_media.duration or 0,
                is_published=False,
            )
            db.add(video)
            db.commit()
            db.refresh(video)
            logger.info(f"Video created: {video.id} by user {owner.id}")
            return video
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Error creating video: {e}")
            raise InternalServerError("Something went wrong while saving the video.")

    def get_video_detail(self, db: Session, video_id: int, viewer: Optional[User]) -> dict:
        """Video with owner, like summary; counts a view for non-owners"""
        video = self.get_visible_video(db, video_id, viewer)

        if video.is_published and not is_owner(video.owner_id, viewer):
            try:
                db.query(Video).filter(Video.id == video.id).update(
                    {Video.views: Video.views + 1}, synchronize_session=False
                )
                db.commit()
                db.refresh(video)
            except SQLAlchemyError as e:
                db.rollback()
                logger.warning(f"Could not increment views for video {video.id}: {e}")

        if viewer is not None:
            user_service.record_watch(db, viewer, video)

        likes_count = db.query(func.count(Like.id)).filter(Like.video_id == video.id).scalar() or 0
        is_liked = viewer is not None and db.query(Like.id).filter(
            Like.video_id == video.id, Like.liked_by_id == viewer.id
        ).first() is not None
        subscriber_count = db.query(func.count(Subscription.id)).filter(
            Subscription.channel_id == video.owner_id
        ).scalar() or 0

        return {
            "video": video,
            "likes_count": likes_count,
            "is_liked": is_liked,
            "subscriber_count": subscriber_count,
        }

    def update_video(
        self,
        db: Session,
        video: Video,
        title: Optional[str] = None,
        description: Optional[str] = None,
        thumbnail_url: Optional[str] = None,
    ) -> Tuple[Video, Optional[str]]:
        """Apply metadata/thumbnail changes; returns the replaced thumbnail URL"""
        previous_thumbnail = None
        try:
            if title is not None:
                video.title = title
            if description is not None:
                video.description = description
            if thumbnail_url is not None:
                previous_thumbnail = video.thumbnail
                video.thumbnail = thumbnail_url
            db.commit()
            db.refresh(video)
            logger.info(f"Video updated: {video.id}")
            return video, previous_thumbnail
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Error updating video {video.id}: {e}")
            raise InternalServerError("Something went wrong while updating the video.")

    def delete_video(self, db: Session, video: Video) -> List[Tuple[str, str]]:
        """
        Delete a video and its dependents

        Returns:
            (url, resource kind) pairs of remote files to remove after commit
        """
        video_id = video.id
        media = [(video.video_file, VIDEO), (video.thumbnail, IMAGE)]
        video_comments = select(Comment.id).where(Comment.video_id == video_id)
        try:
            db.query(Like).filter(Like.comment_id.in_(video_comments)).delete(synchronize_session=False)
            db.query(Like).filter(Like.video_id == video_id).delete(synchronize_session=False)
            db.query(Comment).filter(Comment.video_id == video_id).delete(synchronize_session=False)
            db.query(PlaylistVideo).filter(PlaylistVideo.video_id == video_id).delete(synchronize_session=False)
            db.query(WatchHistory).filter(WatchHistory.video_id == video_id).delete(synchronize_session=False)
            db.delete(video)
            db.commit()
            logger.info(f"Video deleted: {video_id}")
            return media
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Error deleting video {video_id}: {e}")
            raise InternalServerError("Something went wrong while deleting the video.")

    def toggle_publish(self, db: Session, video: Video) -> dict:
        previous = bool(video.is_published)
        try:
            video.is_published = not previous
            db.commit()
            db.refresh(video)
            logger.info(f"Video {video.id} publish status: {previous} -> {video.is_published}")
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Error toggling publish status of video {video.id}: {e}")
            raise InternalServerError("Something went wrong while updating publish status.")
        return {"video": video, "previous_status": previous, "current_status": video.is_published}

# Create singleton instance
video_service = VideoService()
