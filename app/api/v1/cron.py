"""Cron trigger for the scheduled sweep (for external schedulers)."""

import hmac
import logging

from fastapi import APIRouter, Depends, Header
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.config import settings
from app.core.dependencies import get_session_factory
from app.core.exceptions import UnauthorizedError
from app.schemas.tracking import SweepResponse
from app.services.scheduler import run_scheduled_sweep
from app.services.tracking_service import build_tracking_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/cron", tags=["cron"])


@router.get("/run-tracking", response_model=SweepResponse)
async def run_tracking(
    authorization: str | None = Header(None),
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
):
    if not settings.cron_secret:
        logger.error("CRON_SECRET is not set")
        return JSONResponse(status_code=500, content={"detail": "Cron secret not configured"})

    expected = f"Bearer {settings.cron_secret}"
    if not authorization or not hmac.compare_digest(authorization, expected):
        raise UnauthorizedError("Unauthorized")

    summary = await run_scheduled_sweep(session_factory, lambda: build_tracking_service(session_factory))
    return SweepResponse(**summary.to_dict())
