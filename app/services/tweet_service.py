# ============================================================================
# FILE: app/services/tweet_service.py
# ============================================================================
from typing import List
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload
from app.db.models.user import User
from app.db.models.tweet import Tweet
from app.db.models.like import Like
from app.core.exceptions import ForbiddenError, InternalServerError, NotFoundError
from app.core.permissions import is_owner
import logging

logger = logging.getLogger(__name__)

class TweetService:
    """Service layer for short posts"""

    def create_tweet(self, db: Session, user: User, content: str) -> Tweet:
        try:
            tweet = Tweet(content=content, owner_id=user.id)
            db.add(tweet)
            db.commit()
            db.refresh(tweet)
            logger.info(f"Tweet created: {tweet.id} by user {user.id}")
            return tweet
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Error creating tweet: {e}")
            raise InternalServerError("Something went wrong while creating the tweet.")

    def get_user_tweets(self, db: Session, user_id: int) -> List[dict]:
        if not db.query(User.id).filter(User.id == user_id).first():
            raise NotFoundError("User not found.")

        likes_count = (
            select(func.count(Like.id))
            .where(Like.tweet_id == Tweet.id)
            .correlate(Tweet)
            .scalar_subquery()
            .label("likes_count")
        )
        rows = (
            db.query(Tweet, likes_count)
            .options(joinedload(Tweet.owner))
            .filter(Tweet.owner_id == user_id)
            .order_by(Tweet.created_at.desc(), Tweet.id.desc())
            .all()
        )
        return [{"tweet": tweet, "likes_count": count or 0} for tweet, count in rows]

    def _get_own_tweet(self, db: Session, user: User, tweet_id: int) -> Tweet:
        tweet = db.query(Tweet).filter(Tweet.id == tweet_id).first()
        if not tweet:
            raise NotFoundError("Tweet not found.")
        if not is_owner(tweet.owner_id, user):
            raise ForbiddenError("You can only modify your own tweets.")
        return tweet

    def update_tweet(self, db: Session, user: User, tweet_id: int, content: str) -> Tweet:
        tweet = self._get_own_tweet(db, user, tweet_id)
        try:
            tweet.content = content
            db.commit()
            db.refresh(tweet)
            logger.info(f"Tweet updated: {tweet.id}")
            return tweet
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Error updating tweet {tweet_id}: {e}")
            raise InternalServerError("Something went wrong while updating the tweet.")

    def delete_tweet(self, db: Session, user: User, tweet_id: int) -> None:
        tweet = self._get_own_tweet(db, user, tweet_id)
        try:
            db.query(Like).filter(Like.tweet_id == tweet.id).delete(synchronize_session=False)
            db.delete(tweet)
            db.commit()
            logger.info(f"Tweet deleted: {tweet_id}")
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Error deleting tweet {tweet_id}: {e}")
            raise InternalServerError("Something went wrong while deleting the tweet.")

# Create singleton instance
tweet_service = TweetService()
