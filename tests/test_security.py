"""Token and password helper tests."""
from datetime import timedelta

import pytest
from jose import jwt

from safestart.config import get_settings
from safestart.core.security import (
    InvalidTokenError,
    create_access_token,
    create_refresh_token,
    decode_access_token,
    decode_refresh_token,
    generate_reset_token,
    get_password_hash,
    hash_reset_token,
    verify_password,
)

settings = get_settings()


def test_password_hash_roundtrip():
    hashed = get_password_hash("secret123")
    assert hashed != "secret123"
    assert verify_password("secret123", hashed)
    assert not verify_password("secret124", hashed)


def test_access_token_claims():
    token = create_access_token("user-1", "tenant-1", "supervisor")
    claims = decode_access_token(token)
    assert (claims.user_id, claims.tenant_id, claims.role) == ("user-1", "tenant-1", "supervisor")
    assert claims.token_type == "access"


def test_access_token_carries_issuer_and_audience():
    token = create_access_token("user-1", "tenant-1", "driver")
    payload = jwt.get_unverified_claims(token)
    assert payload["iss"] == settings.JWT_ISSUER
    assert payload["aud"] == settings.JWT_AUDIENCE


def test_expired_token_rejected():
    token = create_access_token("user-1", "tenant-1", "driver", expires_delta=timedelta(seconds=-10))
    with pytest.raises(InvalidTokenError):
        decode_access_token(token)


def test_tampered_token_rejected():
    token = create_access_token("user-1", "tenant-1", "driver")
    forged = jwt.encode(
        {**jwt.get_unverified_claims(token), "role": "admin"},
        "some-other-secret",
        algorithm=settings.JWT_ALGORITHM,
    )
    with pytest.raises(InvalidTokenError):
        decode_access_token(forged)


def test_wrong_audience_rejected():
    forged = jwt.encode(
        {
            "sub": "user-1",
            "tenant_id": "tenant-1",
            "role": "admin",
            "type": "access",
            "iss": settings.JWT_ISSUER,
            "aud": "someone-else",
        },
        settings.JWT_ACCESS_SECRET,
        algorithm=settings.JWT_ALGORITHM,
    )
    with pytest.raises(InvalidTokenError):
        decode_access_token(forged)


def test_token_classes_not_interchangeable():
    access = create_access_token("user-1", "tenant-1", "driver")
    refresh = create_refresh_token("user-1", "tenant-1", "driver")

    assert decode_refresh_token(refresh).token_type == "refresh"
    with pytest.raises(InvalidTokenError):
        decode_access_token(refresh)
    with pytest.raises(InvalidTokenError):
        decode_refresh_token(access)


def test_missing_claims_rejected():
    token = jwt.encode(
        {"sub": "user-1", "type": "access", "iss": settings.JWT_ISSUER, "aud": settings.JWT_AUDIENCE},
        settings.JWT_ACCESS_SECRET,
        algorithm=settings.JWT_ALGORITHM,
    )
    with pytest.raises(InvalidTokenError):
        decode_access_token(token)


def test_reset_tokens_are_random_and_hashed():
    first, second = generate_reset_token(), generate_reset_token()
    assert first != second
    assert hash_reset_token(first) == hash_reset_token(first)
    assert len(hash_reset_token(first)) == 64
