"""Verification of access tokens issued by the external identity provider.

This service never issues tokens; it only checks the signature, expiry and
audience of tokens minted by the identity provider with the shared secret.
"""

import jwt

from ...config import settings
from ...core.logging import get_logger

logger = get_logger(__name__)


def decode_access_token(token: str) -> dict | None:
    """Decode and validate an access token.

    Returns:
        Token payload if valid, None if invalid or expired.
    """
    options = {"require": ["sub", "exp"]}
    try:
        return jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
            audience=settings.jwt_audience,
            options=options,
        )
    except jwt.ExpiredSignatureError:
        logger.info("Rejected expired access token")
        return None
    except jwt.InvalidTokenError as e:
        logger.info(f"Rejected invalid access token: {e}")
        return None


def extract_role(payload: dict) -> str | None:
    """Read the marketplace role from the token claims.

    The identity provider stores it in ``user_metadata.user_type``; a top-level
    ``user_type`` claim is accepted as well.
    """
    metadata = payload.get("user_metadata") or {}
    return metadata.get("user_type") or payload.get("user_type")
