# ============================================================================
# FILE: app/api/v1/endpoints/tweet.py
# ============================================================================
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from app.db.session import get_db
from app.api.dependencies import require_current_user
from app.schemas.tweet import TweetCreate, TweetResponse, TweetWithOwner
from app.services.tweet_service import tweet_service
from app.core.responses import api_response
from app.db.models.user import User
import logging

logger = logging.getLogger(__name__)
router = APIRouter()

@router.post("", status_code=status.HTTP_201_CREATED)
async def create_tweet(
    payload: TweetCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_current_user)
):
    tweet = tweet_service.create_tweet(db, current_user, payload.content)
    return api_response(
        status.HTTP_201_CREATED,
        TweetResponse.model_validate(tweet),
        "Tweet created successfully.",
    )

@router.get("/user/{user_id}")
async def get_user_tweets(
    user_id: int,
    db: Session = Depends(get_db)
):
    rows = tweet_service.get_user_tweets(db, user_id)
    tweets = [
        TweetWithOwner.model_validate(row["tweet"]).model_copy(update={"likes_count": row["likes_count"]})
        for row in rows
    ]
    return api_response(status.HTTP_200_OK, tweets, "Tweets fetched successfully.")

@router.patch("/{tweet_id}")
async def update_tweet(
    tweet_id: int,
    payload: TweetCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_current_user)
):
    tweet = tweet_service.update_tweet(db, current_user, tweet_id, payload.content)
    return api_response(
        status.HTTP_200_OK,
        TweetResponse.model_validate(tweet),
        "Tweet updated successfully.",
    )

@router.delete("/{tweet_id}")
async def delete_tweet(
    tweet_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_current_user)
):
    tweet_service.delete_tweet(db, current_user, tweet_id)
    return api_response(status.HTTP_200_OK, {}, "Tweet deleted successfully.")
