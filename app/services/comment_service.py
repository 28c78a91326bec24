# ============================================================================
# FILE: app/services/comment_service.py
# ============================================================================
from typing import List, Optional, Tuple
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload
from app.db.models.user import User
from app.db.models.comment import Comment
from app.db.models.like import Like
from app.core.exceptions import ForbiddenError, InternalServerError, NotFoundError
from app.core.permissions import is_owner
from app.services.video_service import video_service
from app.utils.pagination import offset_for
import logging

logger = logging.getLogger(__name__)

class CommentService:
    """Service layer for comments on videos"""

    def list_comments(
        self,
        db: Session,
        video_id: int,
        viewer: Optional[User],
        page: int = 1,
        limit: int = 10,
        sort_by: str = "createdAt",
        sort_type: str = "desc",
    ) -> Tuple[List[dict], int]:
        video_service.get_visible_video(db, video_id, viewer)

        likes_count = (
            select(func.count(Like.id))
            .where(Like.comment_id == Comment.id)
            .correlate(Comment)
            .scalar_subquery()
            .label("likes_count")
        )
        sort_column = Comment.updated_at if sort_by == "updatedAt" else Comment.created_at
        if sort_type == "asc":
            order = (sort_column.asc(), Comment.id.asc())
        else:
            order = (sort_column.desc(), Comment.id.desc())

        total = db.query(func.count(Comment.id)).filter(Comment.video_id == video_id).scalar() or 0
        rows = (
            db.query(Comment, likes_count)
            .options(joinedload(Comment.owner))
            .filter(Comment.video_id == video_id)
            .order_by(*order)
            .offset(offset_for(page, limit))
            .limit(limit)
            .all()
        )

        liked_ids = set()
        if viewer is not None and rows:
            liked_ids = {
                comment_id for (comment_id,) in db.query(Like.comment_id).filter(
                    Like.liked_by_id == viewer.id,
                    Like.comment_id.in_([comment.id for comment, _ in rows]),
                )
            }

        comments = [
            {"comment": comment, "likes_count": count or 0, "is_liked": comment.id in liked_ids}
            for comment, count in rows
        ]
        return comments, total

    def get_comment(self, db: Session, comment_id: int) -> Comment:
        comment = db.query(Comment).filter(Comment.id == comment_id).first()
        if not comment:
            raise NotFoundError("Comment not found.")
        return comment

    def add_comment(self, db: Session, user: User, video_id: int, content: str) -> Comment:
        """Comment on a visible, published video"""
        video = video_service.get_visible_video(db, video_id, user)
        if not video.is_published:
            raise ForbiddenError("Cannot comment on unpublished video.")

        try:
            comment = Comment(content=content, video_id=video.id, owner_id=user.id)
            db.add(comment)
            db.commit()
            db.refresh(comment)
            logger.info(f"Comment {comment.id} added to video {video.id} by user {user.id}")
            return comment
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Error adding comment to video {video_id}: {e}")
            raise InternalServerError("Something went wrong while adding the comment.")

    def update_comment(self, db: Session, user: User, comment_id: int, content: str) -> Comment:
        comment = self.get_comment(db, comment_id)
        if not is_owner(comment.owner_id, user):
            raise ForbiddenError("You can only edit your own comments.")

        try:
            comment.content = content
            db.commit()
            db.refresh(comment)
            logger.info(f"Comment updated: {comment.id}")
            return comment
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Error updating comment {comment_id}: {e}")
            raise InternalServerError("Something went wrong while updating the comment.")

    def delete_comment(self, db: Session, user: User, comment_id: int) -> None:
        """Allowed for the comment author and for the owner of the video"""
        comment = self.get_comment(db, comment_id)
        if not is_owner(comment.owner_id, user) and not is_owner(comment.video.owner_id, user):
            raise ForbiddenError("You are not allowed to delete this comment.")

        try:
            db.query(Like).filter(Like.comment_id == comment.id).delete(synchronize_session=False)
            db.delete(comment)
            db.commit()
            logger.info(f"Comment deleted: {comment_id} by user {user.id}")
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Error deleting comment {comment_id}: {e}")
            raise InternalServerError("Something went wrong while deleting the comment.")

# Create singleton instance
comment_service = CommentService()
