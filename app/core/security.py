"""Bearer token verification.

Tokens are issued by the external auth service and signed with the shared
``JWT_SECRET_KEY``; this service never mints them.
"""

import uuid

import jwt

from app.core.config import settings


def decode_token(token: str) -> dict:
    """Decode and validate a JWT token. Raises jwt.PyJWTError on failure."""
    return jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])


def user_id_from_token(token: str) -> uuid.UUID:
    """Return the ``sub`` claim as a UUID.

    Raises jwt.PyJWTError for a bad signature/expiry and ValueError for a
    missing or malformed subject.
    """
    payload = decode_token(token)
    subject = payload.get("sub")
    if not subject:
        raise ValueError("token has no subject")
    return uuid.UUID(str(subject))
