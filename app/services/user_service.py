# ============================================================================
# FILE: app/services/user_service.py
# ============================================================================
from datetime import datetime
from typing import List, Optional, Tuple
from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
from app.db.models.user import User, WatchHistory
from app.db.models.video import Video
from app.db.models.comment import Comment
from app.db.models.tweet import Tweet
from app.db.models.like import Like
from app.db.models.subscription import Subscription
from app.db.models.playlist import Playlist, PlaylistVideo
from app.schemas.user import UserCreate, AccountDetailsUpdate
from app.core.exceptions import (
    BadRequestError,
    ConflictError,
    InternalServerError,
    NotFoundError,
    UnauthorizedError,
)
from app.core.security import (
    create_access_token,
    create_refresh_token,
    decode_refresh_token,
    get_password_hash,
    hash_token,
    token_matches,
    verify_password,
)
from app.core.storage import IMAGE, VIDEO
import logging

logger = logging.getLogger(__name__)

class UserService:
    """Service layer for account operations"""

    def get_user_by_id(self, db: Session, user_id: int) -> Optional[User]:
        return db.query(User).filter(User.id == user_id).first()

    def get_user_by_username(self, db: Session, username: str) -> Optional[User]:
        """Get user by username"""
        return db.query(User).filter(User.username == username.lower()).first()

    def get_user_by_username_or_email(self, db: Session, identifier: str) -> Optional[User]:
        identifier = identifier.strip().lower()
        return db.query(User).filter(
            or_(User.username == identifier, User.email == identifier)
        ).first()

    def find_conflicting_user(self, db: Session, username: str, email: str) -> Optional[User]:
        """Account already holding this username or email"""
        return db.query(User).filter(
            or_(User.username == username.lower(), User.email == email.lower())
        ).first()

    def create_user(
        self,
        db: Session,
        user_data: UserCreate,
        avatar: Optional[str] = None,
        cover_image: Optional[str] = None,
    ) -> User:
        """Create a new user account"""
        if self.find_conflicting_user(db, user_data.username, user_data.email):
            raise ConflictError("User with email or username already exists.")

        try:
            user = User(
                username=user_data.username,
                email=user_data.email,
                full_name=user_data.full_name,
                avatar=avatar,
                cover_image=cover_image,
                hashed_password=get_password_hash(user_data.password),
            )
            db.add(user)
            db.commit()
            db.refresh(user)
            logger.info(f"User created: {user.username}")
            return user
        except IntegrityError:
            db.rollback()
            logger.warning(f"Registration raced on username/email: {user_data.username}")
            raise ConflictError("User with email or username already exists.")
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Error creating user: {e}")
            raise InternalServerError("Something went wrong while registering the user.")

    def authenticate_user(self, db: Session, identifier: str, password: str) -> Optional[User]:
        """Authenticate user with username or email and password"""
        user = self.get_user_by_username_or_email(db, identifier)
        if not user:
            return None
        if not verify_password(password, user.hashed_password):
            return None
        return user

    # ------------------------------------------------------------------
    # Token lifecycle
    # ------------------------------------------------------------------

    def issue_tokens(self, db: Session, user: User) -> Tuple[str, str]:
        """
        Create an access/refresh pair and store the refresh digest

        The new digest overwrites the previous one, so only the most recently
        issued refresh token stays valid.
        """
        access_token = create_access_token(user.id, user.email, user.username, user.full_name)
        refresh_token = create_refresh_token(user.id)
        try:
            user.refresh_token_hash = hash_token(refresh_token)
            db.commit()
            db.refresh(user)
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Error storing refresh token for user {user.id}: {e}")
            raise InternalServerError("Something went wrong while generating tokens.")
        return access_token, refresh_token

    def rotate_refresh_token(self, db: Session, token: Optional[str]) -> Tuple[User, str, str]:
        """Exchange a valid refresh token for a new pair, superseding the old one"""
        if not token:
            raise UnauthorizedError()

        payload = decode_refresh_token(token)
        try:
            user_id = int(payload["sub"])
        except (KeyError, ValueError):
            raise UnauthorizedError("Invalid refresh token.")

        user = self.get_user_by_id(db, user_id)
        if not user or not token_matches(token, user.refresh_token_hash):
            logger.warning(f"Refresh token reuse or unknown account: sub={user_id}")
            raise UnauthorizedError("Refresh token is expired or used.")

        access_token, refresh_token = self.issue_tokens(db, user)
        logger.info(f"Refresh token rotated for user {user.id}")
        return user, access_token, refresh_token

    def revoke_refresh_token(self, db: Session, user: User) -> None:
        try:
            user.refresh_token_hash = None
            db.commit()
            logger.info(f"User logged out: {user.username}")
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Error clearing refresh token for user {user.id}: {e}")
            raise InternalServerError("Something went wrong while logging out.")

    # ------------------------------------------------------------------
    # Account management
    # ------------------------------------------------------------------

    def change_password(self, db: Session, user: User, old_password: str, new_password: str) -> None:
        if not verify_password(old_password, user.hashed_password):
            raise UnauthorizedError("Invalid old password.")
        if old_password == new_password:
            raise BadRequestError("New password must be different from the current password.")

        try:
            user.hashed_password = get_password_hash(new_password)
            db.commit()
            logger.info(f"Password changed for user {user.id}")
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Error changing password for user {user.id}: {e}")
            raise InternalServerError("Something went wrong while changing the password.")

    def update_account_details(self, db: Session, user: User, update_data: AccountDetailsUpdate) -> User:
        if update_data.username is None and update_data.full_name is None:
            raise BadRequestError("At least one of username or full_name is required.")

        if update_data.username is not None and update_data.username != user.username:
            if self.get_user_by_username(db, update_data.username):
                raise ConflictError("Username is already taken.")
            user.username = update_data.username
        if update_data.full_name is not None:
            user.full_name = update_data.full_name

        try:
            db.commit()
            db.refresh(user)
            logger.info(f"Account details updated for user {user.id}")
            return user
        except IntegrityError:
            db.rollback()
            raise ConflictError("Username is already taken.")
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Error updating account details for user {user.id}: {e}")
            raise InternalServerError("Something went wrong while updating account details.")

    def replace_image(self, db: Session, user: User, attribute: str, url: str) -> Optional[str]:
        """Point avatar/cover_image at a new URL; returns the previous URL"""
        previous = getattr(user, attribute)
        try:
            setattr(user, attribute, url)
            db.commit()
            db.refresh(user)
            logger.info(f"Updated {attribute} for user {user.id}")
            return previous
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Error updating {attribute} for user {user.id}: {e}")
            raise InternalServerError(f"Something went wrong while updating {attribute.replace('_', ' ')}.")

    # ------------------------------------------------------------------
    # Channel profile and watch history
    # ------------------------------------------------------------------

    def get_channel_profile(self, db: Session, username: str, viewer: Optional[User]) -> dict:
        channel = self.get_user_by_username(db, username.strip())
        if not channel:
            raise NotFoundError("Channel does not exist.")

        subscriber_count = db.query(func.count(Subscription.id)).filter(
            Subscription.channel_id == channel.id
        ).scalar()
        subscribed_to_count = db.query(func.count(Subscription.id)).filter(
            Subscription.subscriber_id == channel.id
        ).scalar()
        is_subscribed = False
        if viewer is not None:
            is_subscribed = db.query(Subscription.id).filter(
                Subscription.channel_id == channel.id,
                Subscription.subscriber_id == viewer.id,
            ).first() is not None

        return {
            "id": channel.id,
            "username": channel.username,
            "email": channel.email,
            "full_name": channel.full_name,
            "avatar": channel.avatar,
            "cover_image": channel.cover_image,
            "subscriber_count": subscriber_count or 0,
            "subscribed_to_count": subscribed_to_count or 0,
            "is_subscribed": is_subscribed,
            "created_at": channel.created_at,
        }

    def record_watch(self, db: Session, user: User, video: Video) -> None:
        """Add a video to the front of the user's history"""
        try:
            entry = db.query(WatchHistory).filter(
                WatchHistory.user_id == user.id,
                WatchHistory.video_id == video.id,
            ).first()
            if entry:
                entry.watched_at = datetime.utcnow()
            else:
                db.add(WatchHistory(user_id=user.id, video_id=video.id))
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.warning(f"Could not record watch history for user {user.id}: {e}")

    def get_watch_history(self, db: Session, user: User) -> List[Video]:
        rows = db.query(WatchHistory).filter(
            WatchHistory.user_id == user.id
        ).order_by(WatchHistory.watched_at.desc(), WatchHistory.id.desc()).all()
        return [row.video for row in rows if row.video is not None]

    # ------------------------------------------------------------------
    # Account deletion
    # ------------------------------------------------------------------

    def delete_account(self, db: Session, user: User, password: Optional[str]) -> List[Tuple[str, str]]:
        """
        Remove the account and everything that depends on it in one transaction

        Returns:
            (url, resource kind) pairs of remote media to delete after commit
        """
        if not password:
            raise BadRequestError("Password is required to delete account.")
        if not verify_password(password, user.hashed_password):
            raise UnauthorizedError("Invalid password.")

        user_id = user.id
        videos = db.query(Video).filter(Video.owner_id == user_id).all()
        media: List[Tuple[str, str]] = []
        for video in videos:
            media.append((video.video_file, VIDEO))
            media.append((video.thumbnail, IMAGE))
        if user.avatar:
            media.append((user.avatar, IMAGE))
        if user.cover_image:
            media.append((user.cover_image, IMAGE))

        own_videos = select(Video.id).where(Video.owner_id == user_id)
        affected_comments = select(Comment.id).where(
            or_(Comment.video_id.in_(own_videos), Comment.owner_id == user_id)
        )
        own_tweets = select(Tweet.id).where(Tweet.owner_id == user_id)
        own_playlists = select(Playlist.id).where(Playlist.owner_id == user_id)

        try:
            # Likes on the user's content, then likes made by the user
            db.query(Like).filter(Like.video_id.in_(own_videos)).delete(synchronize_session=False)
            db.query(Like).filter(Like.comment_id.in_(affected_comments)).delete(synchronize_session=False)
            db.query(Like).filter(Like.tweet_id.in_(own_tweets)).delete(synchronize_session=False)
            db.query(Like).filter(Like.liked_by_id == user_id).delete(synchronize_session=False)

            db.query(Comment).filter(
                or_(Comment.video_id.in_(own_videos), Comment.owner_id == user_id)
            ).delete(synchronize_session=False)
            db.query(Tweet).filter(Tweet.owner_id == user_id).delete(synchronize_session=False)

            db.query(PlaylistVideo).filter(
                or_(PlaylistVideo.video_id.in_(own_videos), PlaylistVideo.playlist_id.in_(own_playlists))
            ).delete(synchronize_session=False)
            db.query(Playlist).filter(Playlist.owner_id == user_id).delete(synchronize_session=False)

            db.query(WatchHistory).filter(
                or_(WatchHistory.user_id == user_id, WatchHistory.video_id.in_(own_videos))
            ).delete(synchronize_session=False)
            db.query(Video).filter(Video.owner_id == user_id).delete(synchronize_session=False)

            db.query(Subscription).filter(
                or_(Subscription.subscriber_id == user_id, Subscription.channel_id == user_id)
            ).delete(synchronize_session=False)
            db.query(User).filter(User.id == user_id).delete(synchronize_session=False)

            db.commit()
            db.expunge_all()
            logger.info(f"Account deleted: user {user_id} ({len(videos)} videos)")
            return media
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Error deleting account {user_id}: {e}")
            raise InternalServerError("Something went wrong while deleting the account.")

# Create singleton instance
user_service = UserService()
