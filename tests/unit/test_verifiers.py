from __future__ import annotations

import jwt
import pytest

from messaging_service.config import Settings
from messaging_service.domain.value_objects.enums import UserType
from messaging_service.infrastructure.auth.verifiers import (
    HS256Verifier,
    JWKSVerifier,
    build_verifier,
    principal_from_claims,
)

SECRET = "unit-test-secret-0123456789abcdef0123"


def test_principal_from_claims():
    principal = principal_from_claims({"sub": "4", "user_type": "vendor"})

    assert principal.user_id == 4
    assert principal.user_type == UserType.VENDOR


def test_role_claim_and_unknown_type_fallback():
    assert principal_from_claims({"sub": "7", "role": "admin"}).user_type == UserType.ADMIN
    assert principal_from_claims({"sub": "3", "user_type": "robot"}).user_type == UserType.CLIENT


@pytest.mark.asyncio
async def test_hs256_verifier_roundtrip():
    token = jwt.encode({"sub": "3"}, SECRET, algorithm="HS256")

    principal = await HS256Verifier(SECRET).verify(token)

    assert principal.user_id == 3


@pytest.mark.asyncio
async def test_hs256_verifier_rejects_bad_signature():
    token = jwt.encode({"sub": "3"}, "another-secret-entirely-0123456789abcdef", algorithm="HS256")

    with pytest.raises(jwt.InvalidTokenError):
        await HS256Verifier(SECRET).verify(token)


def test_claims_without_numeric_sub_are_invalid():
    with pytest.raises(jwt.InvalidTokenError):
        principal_from_claims({"sub": "anna"})
    with pytest.raises(jwt.InvalidTokenError):
        principal_from_claims({"user_type": "client"})


def test_build_verifier_follows_settings():
    config = Settings(
        POSTGRES_USER="u", POSTGRES_PASSWORD="p", POSTGRES_DB="d",
        JWT_VERIFY_MODE="jwks", JWKS_URL="https://id.example.test/jwks.json",
    )

    assert isinstance(build_verifier(config), JWKSVerifier)
    assert isinstance(build_verifier(config.model_copy(update={"JWT_VERIFY_MODE": "hs256"})), HS256Verifier)


def test_jwks_mode_requires_url():
    with pytest.raises(ValueError):
        Settings(POSTGRES_USER="u", POSTGRES_PASSWORD="p", POSTGRES_DB="d", JWT_VERIFY_MODE="jwks")


def test_build_verifier_rejects_jwks_mode_without_url():
    config = Settings(POSTGRES_USER="u", POSTGRES_PASSWORD="p", POSTGRES_DB="d", JWT_VERIFY_MODE="hs256")
    unchecked = config.model_copy(update={"JWT_VERIFY_MODE": "jwks", "JWKS_URL": None})

    with pytest.raises(ValueError, match="JWKS_URL"):
        build_verifier(unchecked)
