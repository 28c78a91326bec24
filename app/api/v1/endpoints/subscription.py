# ============================================================================
# FILE: app/api/v1/endpoints/subscription.py
# ============================================================================
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from app.db.session import get_db
from app.api.dependencies import require_current_user
from app.schemas.user import OwnerSummary
from app.services.subscription_service import subscription_service
from app.core.responses import api_response
from app.db.models.user import User
import logging

logger = logging.getLogger(__name__)
router = APIRouter()

@router.get("")
async def get_subscribed_channels(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_current_user)
):
    """Channels the current user follows"""
    channels = subscription_service.get_subscribed_channels(db, current_user)
    return api_response(
        status.HTTP_200_OK,
        [OwnerSummary.model_validate(channel) for channel in channels],
        "Subscribed channels fetched successfully.",
    )

@router.get("/channel/{channel_id}")
async def get_subscriber_count(
    channel_id: int,
    db: Session = Depends(get_db)
):
    count = subscription_service.get_subscriber_count(db, channel_id)
    return api_response(
        status.HTTP_200_OK,
        {"channel_id": channel_id, "subscriber_count": count},
        "Subscriber count fetched successfully.",
    )

@router.post("/channel/{channel_id}")
async def toggle_subscription(
    channel_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_current_user)
):
    subscribed, _ = subscription_service.toggle_subscription(db, current_user, channel_id)
    if subscribed:
        return api_response(
            status.HTTP_201_CREATED,
            {"is_subscribed": True, "channel_id": channel_id},
            "Subscribed successfully.",
        )
    return api_response(
        status.HTTP_200_OK,
        {"is_subscribed": False, "channel_id": channel_id},
        "Unsubscribed successfully.",
    )

@router.get("/subscribers/{channel_id}")
async def get_channel_subscribers(
    channel_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_current_user)
):
    """Subscriber list; only the channel owner may see it"""
    subscribers = subscription_service.get_subscribers(db, current_user, channel_id)
    return api_response(
        status.HTTP_200_OK,
        [OwnerSummary.model_validate(user) for user in subscribers],
        "Subscribers fetched successfully.",
    )
