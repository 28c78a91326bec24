# ============================================================================
# FILE: tests/test_security.py
# ============================================================================
from datetime import timedelta

import pytest
from jose import jwt

from app.config import settings
from app.core.exceptions import UnauthorizedError
from app.core.permissions import AccountId, is_owner
from app.core.security import (
    create_access_token,
    create_refresh_token,
    decode_access_token,
    decode_refresh_token,
    get_password_hash,
    hash_token,
    token_matches,
    verify_password,
)


def test_password_hash_verifies_only_the_original_password():
    digest = get_password_hash("secret1")

    assert digest != "secret1"
    assert verify_password("secret1", digest)
    assert not verify_password("secret2", digest)
    assert not verify_password("", digest)
    assert not verify_password("secret1", None)


def test_verify_password_treats_garbage_digest_as_mismatch():
    assert not verify_password("secret1", "not-a-bcrypt-digest")


def test_access_token_carries_identity_claims():
    token = create_access_token(7, "alice@mail.com", "alice", "Alice Tester")
    payload = decode_access_token(token)

    assert payload["sub"] == "7"
    assert payload["email"] == "alice@mail.com"
    assert payload["username"] == "alice"
    assert payload["full_name"] == "Alice Tester"
    assert payload["type"] == "access"


def test_refresh_tokens_issued_back_to_back_differ():
    first = create_refresh_token(7)
    second = create_refresh_token(7)

    assert first != second
    assert decode_refresh_token(first)["sub"] == "7"


def test_expired_refresh_token_is_rejected():
    token = create_refresh_token(7, expires_delta=timedelta(seconds=-5))

    with pytest.raises(UnauthorizedError) as exc_info:
        decode_refresh_token(token)
    assert exc_info.value.detail == "Refresh token expired."


def test_tampered_or_wrong_type_tokens_are_rejected():
    access = create_access_token(7, "alice@mail.com", "alice", "Alice Tester")
    refresh = create_refresh_token(7)

    with pytest.raises(UnauthorizedError) as exc_info:
        decode_refresh_token(access)
    assert exc_info.value.detail == "Invalid refresh token."

    with pytest.raises(UnauthorizedError):
        decode_access_token(refresh)

    forged = jwt.encode({"sub": "7", "type": "access"}, "wrong-secret", algorithm=settings.ALGORITHM)
    with pytest.raises(UnauthorizedError):
        decode_access_token(forged)

    with pytest.raises(UnauthorizedError):
        decode_access_token("   ")


def test_refresh_digest_matches_only_its_token():
    token = create_refresh_token(7)
    digest = hash_token(token)

    assert digest != token
    assert len(digest) == 64
    assert token_matches(token, digest)
    assert not token_matches(create_refresh_token(7), digest)
    assert not token_matches(token, None)


class _Account:
    def __init__(self, id):
        self.id = id


def test_ownership_is_account_id_equality():
    assert is_owner(AccountId(3), _Account(3))
    assert not is_owner(3, _Account(4))
    assert not is_owner(3, None)
    assert not is_owner(None, _Account(3))
