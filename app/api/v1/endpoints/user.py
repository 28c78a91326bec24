# ============================================================================
# FILE: app/api/v1/endpoints/user.py
# ============================================================================
from fastapi import APIRouter, Depends, Form, Request, status
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sqlalchemy.orm import Session
from app.db.session import get_db
from app.api.dependencies import (
    ACCESS_TOKEN_COOKIE,
    REFRESH_TOKEN_COOKIE,
    get_current_user,
    get_storage,
    require_current_user,
    require_guest,
)
from app.api.uploads import IMAGE_KIND, FieldSpec, StagedUploads, UploadFields
from app.schemas.user import (
    AccountDetailsUpdate,
    ChangePasswordRequest,
    ChannelProfile,
    DeleteAccountRequest,
    LoginResponse,
    RefreshTokenRequest,
    TokenPair,
    UserCreate,
    UserLogin,
    UserResponse,
)
from app.schemas.video import VideoWithOwner
from app.services.user_service import user_service
from app.services.upload_service import compensate_on_failure, discard_quietly, discard_urls, transfer
from app.core.exceptions import BadRequestError, ConflictError, UnauthorizedError, validation_messages
from app.core.responses import api_response
from app.core.storage import IMAGE, StorageClient
from app.config import settings
from app.db.models.user import User
from typing import Optional
import logging

logger = logging.getLogger(__name__)
router = APIRouter()

avatar_upload = UploadFields({"avatar": FieldSpec(IMAGE_KIND, "Avatar")}, required=("avatar",))
cover_image_upload = UploadFields(
    {"cover_image": FieldSpec(IMAGE_KIND, "Cover image")}, required=("cover_image",)
)
registration_uploads = UploadFields({
    "avatar": FieldSpec(IMAGE_KIND, "Avatar"),
    "cover_image": FieldSpec(IMAGE_KIND, "Cover image"),
})

def set_auth_cookies(response: JSONResponse, access_token: str, refresh_token: str) -> JSONResponse:
    options = settings.cookie_options
    response.set_cookie(
        ACCESS_TOKEN_COOKIE, access_token,
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60, **options
    )
    response.set_cookie(
        REFRESH_TOKEN_COOKIE, refresh_token,
        max_age=settings.REFRESH_TOKEN_EXPIRE_DAYS * 24 * 60 * 60, **options
    )
    return response

def clear_auth_cookies(response: JSONResponse) -> JSONResponse:
    options = settings.cookie_options
    response.delete_cookie(ACCESS_TOKEN_COOKIE, **options)
    response.delete_cookie(REFRESH_TOKEN_COOKIE, **options)
    return response

@router.post("/register", status_code=status.HTTP_201_CREATED, dependencies=[Depends(require_guest)])
async def register(
    username: Optional[str] = Form(None),
    email: Optional[str] = Form(None),
    full_name: Optional[str] = Form(None),
    password: Optional[str] = Form(None),
    staged: StagedUploads = Depends(registration_uploads),
    db: Session = Depends(get_db),
    storage: StorageClient = Depends(get_storage),
):
    """
    Register a new account (multipart)
    Optional avatar / cover_image files are uploaded only after validation
    """
    if any(not (value or "").strip() for value in (username, email, full_name, password)):
        raise BadRequestError("All fields are required.")

    try:
        user_data = UserCreate(username=username, email=email, full_name=full_name, password=password)
    except ValidationError as e:
        raise BadRequestError("Invalid registration data.", errors=validation_messages(e.errors()))

    # Duplicates are rejected before anything reaches remote storage
    if user_service.find_conflicting_user(db, user_data.username, user_data.email):
        raise ConflictError("User with email or username already exists.")

    media = await transfer(storage, staged)
    async with compensate_on_failure(storage, media):
        user = user_service.create_user(
            db,
            user_data,
            avatar=media["avatar"].url if "avatar" in media else None,
            cover_image=media["cover_image"].url if "cover_image" in media else None,
        )

    return api_response(
        status.HTTP_201_CREATED,
        UserResponse.model_validate(user),
        "User registered successfully.",
    )

@router.post("/login", dependencies=[Depends(require_guest)])
async def login(
    credentials: UserLogin,
    db: Session = Depends(get_db)
):
    """
    Login with username or email and password
    Returns tokens in the body and as HTTP-only cookies
    """
    user = user_service.authenticate_user(db, credentials.username_or_email, credentials.password)
    if not user:
        logger.info("Failed login attempt")
        raise UnauthorizedError("Invalid user credentials.")

    access_token, refresh_token = user_service.issue_tokens(db, user)
    logger.info(f"User logged in: {user.username}")

    response = api_response(
        status.HTTP_200_OK,
        LoginResponse(
            user=UserResponse.model_validate(user),
            access_token=access_token,
            refresh_token=refresh_token,
        ),
        "User logged in successfully.",
    )
    return set_auth_cookies(response, access_token, refresh_token)

@router.delete("/logout")
async def logout(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_current_user)
):
    user_service.revoke_refresh_token(db, current_user)
    response = api_response(status.HTTP_200_OK, {}, "User logged out successfully.")
    return clear_auth_cookies(response)

@router.post("/refresh-access-token", dependencies=[Depends(require_guest)])
async def refresh_access_token(
    request: Request,
    payload: Optional[RefreshTokenRequest] = None,
    db: Session = Depends(get_db)
):
    """
    Exchange a refresh token (cookie first, then JSON body) for a new pair
    The presented token is superseded and can not be used again
    """
    token = request.cookies.get(REFRESH_TOKEN_COOKIE) or (payload.refresh_token if payload else None)
    user, access_token, refresh_token = user_service.rotate_refresh_token(db, token)

    response = api_response(
        status.HTTP_200_OK,
        TokenPair(access_token=access_token, refresh_token=refresh_token),
        "Access token refreshed successfully.",
    )
    return set_auth_cookies(response, access_token, refresh_token)

@router.patch("/change-current-password")
async def change_current_password(
    payload: ChangePasswordRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_current_user)
):
    user_service.change_password(db, current_user, payload.old_password, payload.new_password)
    return api_response(status.HTTP_200_OK, {}, "Password changed successfully.")

@router.get("/get-current-user")
async def get_current_user_info(
    current_user: User = Depends(require_current_user)
):
    """
    Get current user information
    Requires authentication
    """
    return api_response(
        status.HTTP_200_OK,
        UserResponse.model_validate(current_user),
        "Current user fetched successfully.",
    )

@router.patch("/update-account-details")
async def update_account_details(
    payload: AccountDetailsUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_current_user)
):
    user = user_service.update_account_details(db, current_user, payload)
    return api_response(
        status.HTTP_200_OK,
        UserResponse.model_validate(user),
        "Account details updated successfully.",
    )

async def _replace_image(
    db: Session,
    storage: StorageClient,
    user: User,
    staged: StagedUploads,
    field: str,
) -> User:
    media = await transfer(storage, staged)
    async with compensate_on_failure(storage, media):
        previous = user_service.replace_image(db, user, field, media[field].url)
    if previous:
        await discard_quietly(storage, previous, IMAGE)
    return user

@router.patch("/update-user-avatar")
async def update_user_avatar(
    current_user: User = Depends(require_current_user),
    staged: StagedUploads = Depends(avatar_upload),
    db: Session = Depends(get_db),
    storage: StorageClient = Depends(get_storage),
):
    user = await _replace_image(db, storage, current_user, staged, "avatar")
    return api_response(status.HTTP_200_OK, UserResponse.model_validate(user), "Avatar updated successfully.")

@router.patch("/update-user-cover-image")
async def update_user_cover_image(
    current_user: User = Depends(require_current_user),
    staged: StagedUploads = Depends(cover_image_upload),
    db: Session = Depends(get_db),
    storage: StorageClient = Depends(get_storage),
):
    user = await _replace_image(db, storage, current_user, staged, "cover_image")
    return api_response(status.HTTP_200_OK, UserResponse.model_validate(user), "Cover image updated successfully.")

@router.get("/channel/{username}")
async def get_channel_profile(
    username: str,
    db: Session = Depends(get_db),
    current_user: Optional[User] = Depends(get_current_user)
):
    """Public channel profile with subscription counts for the optional viewer"""
    profile = user_service.get_channel_profile(db, username, current_user)
    return api_response(
        status.HTTP_200_OK,
        ChannelProfile(**profile),
        "User channel fetched successfully.",
    )

@router.get("/get-user-watch-history")
async def get_user_watch_history(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_current_user)
):
    """
    Videos the user watched, most recent first
    Requires authentication
    """
    videos = user_service.get_watch_history(db, current_user)
    return api_response(
        status.HTTP_200_OK,
        [VideoWithOwner.model_validate(video) for video in videos],
        "Watch history fetched successfully.",
    )

@router.delete("/delete-account")
async def delete_account(
    payload: Optional[DeleteAccountRequest] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_current_user),
    storage: StorageClient = Depends(get_storage),
):
    """
    Permanently delete the account and all of its content
    Remote media is removed after the database transaction commits
    """
    media = user_service.delete_account(db, current_user, payload.password if payload else None)
    await discard_urls(storage, media)

    response = api_response(status.HTTP_200_OK, {}, "Account deleted successfully.")
    return clear_auth_cookies(response)
