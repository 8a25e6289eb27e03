"""Turn identity-service JWTs into a Principal."""
from __future__ import annotations

import logging
from typing import Any

import jwt

from messaging_service.application.dto.principal import Principal
from messaging_service.application.ports.auth import TokenVerifier
from messaging_service.config import Settings
from messaging_service.domain.value_objects.enums import UserType

logger = logging.getLogger(__name__)

ASYMMETRIC_ALGORITHMS = ["RS256", "ES256"]


def principal_from_claims(claims: dict[str, Any]) -> Principal:
    """Map verified claims to a Principal. ``sub`` must be a numeric user id."""
    try:
        user_id = int(claims["sub"])
    except (KeyError, TypeError, ValueError) as exc:
        raise jwt.InvalidTokenError("token has no numeric 'sub' claim") from exc

    raw_type = claims.get("user_type", claims.get("role", UserType.CLIENT))
    try:
        user_type = UserType(raw_type)
    except ValueError:
        logger.debug("Unknown user_type %r for user %d, using client", raw_type, user_id)
        user_type = UserType.CLIENT
    return Principal(user_id=user_id, user_type=user_type)


class HS256Verifier:
    """Shared-secret verification, used when the identity service signs with HMAC."""

    def __init__(self, secret: str, algorithm: str = "HS256") -> None:
        self._secret = secret
        self._algorithms = [algorithm]

    async def verify(self, token: str) -> Principal:
        claims = jwt.decode(
            token, self._secret, algorithms=self._algorithms, options={"require": ["sub"]},
        )
        return principal_from_claims(claims)


class JWKSVerifier:
    """Public-key verification against the identity service's JWKS document."""

    def __init__(self, jwks_url: str) -> None:
        self._keys = jwt.PyJWKClient(jwks_url, cache_keys=True)

    async def verify(self, token: str) -> Principal:
        key = self._keys.get_signing_key_from_jwt(token)
        claims = jwt.decode(
            token, key.key, algorithms=ASYMMETRIC_ALGORITHMS, options={"require": ["sub"]},
        )
        return principal_from_claims(claims)


def build_verifier(config: Settings) -> TokenVerifier:
    if config.JWT_VERIFY_MODE == "jwks":
        if not config.JWKS_URL:
            raise ValueError("JWKS_URL must be set when JWT_VERIFY_MODE=jwks")
        return JWKSVerifier(config.JWKS_URL)
    return HS256Verifier(config.JWT_SECRET, config.JWT_ALGORITHM)
