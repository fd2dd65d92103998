import logging
from uuid import UUID

import jwt
from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.exceptions import ConfigurationError, TrackingFailedError, UnauthorizedError
from app.core.security import user_id_from_token
from app.db.postgres import async_session_factory
from app.services.tracking_service import TrackingService, build_tracking_service

logger = logging.getLogger(__name__)


async def get_current_user_id(
    authorization: str = Header(..., description="Bearer <token>"),
) -> UUID:
    if not authorization.startswith("Bearer "):
        raise UnauthorizedError("Invalid authorization header")

    token = authorization[7:]
    try:
        return user_id_from_token(token)
    except jwt.PyJWTError:
        raise UnauthorizedError("Invalid or expired token")
    except ValueError:
        raise UnauthorizedError("Invalid token payload")


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Session factory for work that outlives a single request session."""
    return async_session_factory


def get_tracking_service(
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
) -> TrackingService:
    try:
        return build_tracking_service(session_factory)
    except ConfigurationError as e:
        logger.error("Tracking service unavailable: %s", e)
        raise TrackingFailedError("AI gateway is not configured")
