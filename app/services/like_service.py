# ============================================================================
# FILE: app/services/like_service.py
# Toggle reactions on videos, comments and tweets
# ============================================================================
from typing import List, Optional, Tuple
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, joinedload
from app.db.models.user import User
from app.db.models.video import Video
from app.db.models.comment import Comment
from app.db.models.tweet import Tweet
from app.db.models.like import Like
from app.core.exceptions import ConflictError, ForbiddenError, InternalServerError, NotFoundError
from app.services.video_service import video_service
from app.utils.pagination import offset_for
import logging

logger = logging.getLogger(__name__)

class LikeService:
    """Service layer for like toggles"""

    def find_like(self, db: Session, user_id: int, target: str, target_id: int) -> Optional[Like]:
        column = getattr(Like, f"{target}_id")
        return db.query(Like).filter(Like.liked_by_id == user_id, column == target_id).first()

    def _toggle(self, db: Session, user: User, target: str, target_id: int) -> Tuple[bool, Optional[Like]]:
        """
        Delete the like if present, otherwise create it

        Returns:
            (liked, like) where liked is the state after the toggle
        """
        existing = self.find_like(db, user.id, target, target_id)

        try:
            if existing:
                db.delete(existing)
                db.commit()
                logger.info(f"User {user.id} unliked {target} {target_id}")
                return False, None

            like = Like(liked_by_id=user.id, **{f"{target}_id": target_id})
            db.add(like)
            db.commit()
            db.refresh(like)
            logger.info(f"User {user.id} liked {target} {target_id}")
            return True, like
        except IntegrityError:
            db.rollback()
            logger.warning(f"Concurrent like toggle on {target} {target_id} by user {user.id}")
            raise ConflictError(f"Like on this {target} changed concurrently. Please retry.")
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Error toggling like on {target} {target_id}: {e}")
            raise InternalServerError(f"Something went wrong while toggling {target} like.")

    def toggle_video_like(self, db: Session, user: User, video_id: int) -> Tuple[bool, Optional[Like]]:
        video = video_service.get_visible_video(db, video_id, user)
        if not video.is_published:
            raise ForbiddenError("Cannot like an unpublished video.")
        return self._toggle(db, user, "video", video.id)

    def toggle_comment_like(self, db: Session, user: User, comment_id: int) -> Tuple[bool, Optional[Like]]:
        if not db.query(Comment.id).filter(Comment.id == comment_id).first():
            raise NotFoundError("Comment not found.")
        return self._toggle(db, user, "comment", comment_id)

    def toggle_tweet_like(self, db: Session, user: User, tweet_id: int) -> Tuple[bool, Optional[Like]]:
        if not db.query(Tweet.id).filter(Tweet.id == tweet_id).first():
            raise NotFoundError("Tweet not found.")
        return self._toggle(db, user, "tweet", tweet_id)

    def get_liked_videos(self, db: Session, user: User, page: int = 1, limit: int = 10) -> Tuple[List[Video], int]:
        """Published videos the user liked, most recent like first"""
        query = (
            db.query(Video)
            .join(Like, Like.video_id == Video.id)
            .filter(Like.liked_by_id == user.id, Video.is_published.is_(True))
        )
        total = query.with_entities(func.count(Like.id)).scalar() or 0
        videos = (
            query.options(joinedload(Video.owner))
            .order_by(Like.created_at.desc(), Like.id.desc())
            .offset(offset_for(page, limit))
            .limit(limit)
            .all()
        )
        return videos, total

# Create singleton instance
like_service = LikeService()
