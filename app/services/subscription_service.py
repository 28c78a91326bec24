# ============================================================================
# FILE: app/services/subscription_service.py
# ============================================================================
from typing import List, Optional, Tuple
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
from app.db.models.user import User
from app.db.models.subscription import Subscription
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

class SubscriptionService:
    """Service layer for channel subscriptions"""

    def _get_channel(self, db: Session, channel_id: int) -> User:
        channel = db.query(User).filter(User.id == channel_id).first()
        if not channel:
            raise NotFoundError("Channel not found.")
        return channel

    def find_subscription(self, db: Session, subscriber_id: int, channel_id: int) -> Optional[Subscription]:
        return db.query(Subscription).filter(
            Subscription.subscriber_id == subscriber_id,
            Subscription.channel_id == channel_id,
        ).first()

    def toggle_subscription(self, db: Session, user: User, channel_id: int) -> Tuple[bool, Optional[Subscription]]:
        """Subscribe if absent, unsubscribe if present"""
        if is_owner(channel_id, user):
            raise BadRequestError("You cannot subscribe to your own channel.")

        self._get_channel(db, channel_id)
        existing = self.find_subscription(db, user.id, channel_id)

        try:
            if existing:
                db.delete(existing)
                db.commit()
                logger.info(f"User {user.id} unsubscribed from channel {channel_id}")
                return False, None

            subscription = Subscription(subscriber_id=user.id, channel_id=channel_id)
            db.add(subscription)
            db.commit()
            db.refresh(subscription)
            logger.info(f"User {user.id} subscribed to channel {channel_id}")
            return True, subscription
        except IntegrityError:
            db.rollback()
            logger.warning(f"Concurrent subscription toggle: user {user.id} channel {channel_id}")
            raise ConflictError("Subscription changed concurrently. Please retry.")
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Error toggling subscription to channel {channel_id}: {e}")
            raise InternalServerError("Something went wrong while toggling subscription.")

    def get_subscribed_channels(self, db: Session, user: User) -> List[User]:
        """Channels the user follows, newest subscription first"""
        return (
            db.query(User)
            .join(Subscription, Subscription.channel_id == User.id)
            .filter(Subscription.subscriber_id == user.id)
            .order_by(Subscription.created_at.desc(), Subscription.id.desc())
            .all()
        )

    def get_subscriber_count(self, db: Session, channel_id: int) -> int:
        self._get_channel(db, channel_id)
        return db.query(func.count(Subscription.id)).filter(
            Subscription.channel_id == channel_id
        ).scalar() or 0

    def get_subscribers(self, db: Session, user: User, channel_id: int) -> List[User]:
        """Subscriber list, visible to the channel owner only"""
        self._get_channel(db, channel_id)
        if not is_owner(channel_id, user):
            raise ForbiddenError("Only the channel owner can view its subscribers.")
        return (
            db.query(User)
            .join(Subscription, Subscription.subscriber_id == User.id)
            .filter(Subscription.channel_id == channel_id)
            .order_by(Subscription.created_at.desc(), Subscription.id.desc())
            .all()
        )

# Create singleton instance
subscription_service = SubscriptionService()
