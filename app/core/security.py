# ============================================================================
# FILE: app/core/security.py
# Password hashing and JWT access/refresh token handling
# ============================================================================
from datetime import datetime, timedelta
from typing import Optional
from uuid import uuid4
import hashlib
import hmac
import logging

from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext

from app.config import settings
from app.core.exceptions import UnauthorizedError

logger = logging.getLogger(__name__)

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.BCRYPT_ROUNDS,
)

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"


def get_password_hash(password: str) -> str:
    """Hash a plaintext password with bcrypt"""
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    """Constant-time check of a plaintext password against a stored digest"""
    if not isinstance(plain_password, str) or not hashed_password:
        return False
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        # Malformed digest in storage; treat as mismatch
        logger.warning("Stored password digest could not be parsed")
        return False


def create_access_token(
    user_id: int,
    email: str,
    username: str,
    full_name: str,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """
    Create a short-lived access token carrying the public identity claims

    Args:
        user_id: Account id (stored as the "sub" claim)
        expires_delta: Override for ACCESS_TOKEN_EXPIRE_MINUTES

    Returns:
        Encoded JWT
    """
    expire = datetime.utcnow() + (
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    to_encode = {
        "sub": str(user_id),
        "email": email,
        "username": username,
        "full_name": full_name,
        "type": ACCESS_TOKEN_TYPE,
        "exp": expire,
    }
    return jwt.encode(to_encode, settings.ACCESS_TOKEN_SECRET, algorithm=settings.ALGORITHM)


def create_refresh_token(user_id: int, expires_delta: Optional[timedelta] = None) -> str:
    """Create a long-lived refresh token that only identifies the account"""
    expire = datetime.utcnow() + (
        expires_delta or timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS)
    )
    to_encode = {
        "sub": str(user_id),
        "type": REFRESH_TOKEN_TYPE,
        # Unique per issue so consecutive tokens never collide
        "jti": uuid4().hex,
        "exp": expire,
    }
    return jwt.encode(to_encode, settings.REFRESH_TOKEN_SECRET, algorithm=settings.ALGORITHM)


def _decode(token: str, secret: str, expected_type: str, label: str) -> dict:
    if not token or not token.strip():
        raise UnauthorizedError("Unauthorized access.")
    try:
        payload = jwt.decode(token, secret, algorithms=[settings.ALGORITHM])
    except ExpiredSignatureError:
        raise UnauthorizedError(f"{label} expired.")
    except JWTError:
        raise UnauthorizedError(f"Invalid {label.lower()}.")

    if payload.get("type") != expected_type or not payload.get("sub"):
        raise UnauthorizedError(f"Invalid {label.lower()}.")
    return payload


def decode_access_token(token: str) -> dict:
    """Decode and validate an access token (raises UnauthorizedError)"""
    return _decode(token, settings.ACCESS_TOKEN_SECRET, ACCESS_TOKEN_TYPE, "Access token")


def decode_refresh_token(token: str) -> dict:
    """Decode and validate a refresh token signature/expiry (raises UnauthorizedError)"""
    return _decode(token, settings.REFRESH_TOKEN_SECRET, REFRESH_TOKEN_TYPE, "Refresh token")


def hash_token(token: str) -> str:
    """Digest stored server-side in place of the raw refresh token"""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def token_matches(token: str, stored_digest: Optional[str]) -> bool:
    if not stored_digest:
        return False
    return hmac.compare_digest(hash_token(token), stored_digest)
