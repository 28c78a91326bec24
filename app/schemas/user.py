# ============================================================================
# FILE: app/schemas/user.py
# ============================================================================
from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Optional
from datetime import datetime
import re

USERNAME_PATTERN = re.compile(r"^[a-zA-Z0-9_]+$")


def _clean_username(value: str) -> str:
    value = value.strip()
    if not USERNAME_PATTERN.match(value):
        raise ValueError("Username can only contain letters, numbers and underscores")
    return value.lower()


class UserCreate(BaseModel):
    """Schema for user registration"""
    username: str = Field(..., min_length=1, max_length=50)
    email: EmailStr
    full_name: str = Field(..., min_length=3, max_length=100)
    password: str = Field(..., min_length=6, max_length=128)

    @field_validator("username")
    @classmethod
    def validate_username(cls, v: str) -> str:
        return _clean_username(v)

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, v: str) -> str:
        return v.lower()

    @field_validator("full_name", mode="before")
    @classmethod
    def strip_full_name(cls, v):
        return v.strip() if isinstance(v, str) else v


class UserLogin(BaseModel):
    """Schema for user login (username or email)"""
    username_or_email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class RefreshTokenRequest(BaseModel):
    refresh_token: Optional[str] = None


class ChangePasswordRequest(BaseModel):
    old_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=6, max_length=128)


class AccountDetailsUpdate(BaseModel):
    """Partial update of public account details"""
    username: Optional[str] = Field(None, min_length=1, max_length=50)
    full_name: Optional[str] = Field(None, min_length=3, max_length=100)

    @field_validator("username")
    @classmethod
    def validate_username(cls, v: Optional[str]) -> Optional[str]:
        return _clean_username(v) if v is not None else v

    @field_validator("full_name", mode="before")
    @classmethod
    def strip_full_name(cls, v):
        return v.strip() if isinstance(v, str) else v


class DeleteAccountRequest(BaseModel):
    password: Optional[str] = None


class OwnerSummary(BaseModel):
    """Public fields of an account embedded in other resources"""
    id: int
    username: str
    full_name: str
    avatar: Optional[str] = None

    class Config:
        from_attributes = True


class UserResponse(BaseModel):
    """Schema for user response; never carries password or token fields"""
    id: int
    username: str
    email: str
    full_name: str
    avatar: Optional[str] = None
    cover_image: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ChannelProfile(BaseModel):
    id: int
    username: str
    email: str
    full_name: str
    avatar: Optional[str] = None
    cover_image: Optional[str] = None
    subscriber_count: int = 0
    subscribed_to_count: int = 0
    is_subscribed: bool = False
    created_at: datetime


class LoginResponse(BaseModel):
    """Schema for token response on login"""
    user: UserResponse
    access_token: str
    refresh_token: str


class TokenPair(BaseModel):
    access_token: str
    refresh_token: str
