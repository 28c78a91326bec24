# ============================================================================
# FILE: app/services/dashboard_service.py
# ============================================================================
from typing import List, Tuple
from sqlalchemy import func
from sqlalchemy.orm import Session
from app.db.models.user import User
from app.db.models.video import Video
from app.db.models.like import Like
from app.db.models.subscription import Subscription
from app.services.video_service import likes_count_column

class DashboardService:
    """Aggregates for a channel owner's dashboard"""

    def get_channel_stats(self, db: Session, user: User) -> dict:
        total_videos, total_views = db.query(
            func.count(Video.id), func.coalesce(func.sum(Video.views), 0)
        ).filter(Video.owner_id == user.id).one()

        total_subscribers = db.query(func.count(Subscription.id)).filter(
            Subscription.channel_id == user.id
        ).scalar()

        total_likes = (
            db.query(func.count(Like.id))
            .join(Video, Like.video_id == Video.id)
            .filter(Video.owner_id == user.id)
            .scalar()
        )

        return {
            "total_video_views": int(total_views or 0),
            "total_subscribers": total_subscribers or 0,
            "total_videos": total_videos or 0,
            "total_likes": total_likes or 0,
        }

    def get_channel_videos(self, db: Session, user: User) -> List[Tuple[Video, int]]:
        """All of the owner's videos, published or not, newest first"""
        likes_count = likes_count_column()
        rows = (
            db.query(Video, likes_count)
            .filter(Video.owner_id == user.id)
            .order_by(Video.created_at.desc(), Video.id.desc())
            .all()
        )
        return [(video, count or 0) for video, count in rows]

# Create singleton instance
dashboard_service = DashboardService()
