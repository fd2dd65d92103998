"""Celery tasks for scheduled and on-demand tracking runs."""

import asyncio
import logging
from uuid import UUID

from app.core.exceptions import ConfigurationError
from app.tasks.celery_app import celery_app

logger = logging.getLogger(__name__)


def _make_session_factory():
    """Create a fresh async engine + session factory for Celery worker context.

    Returns ``(engine, session_factory)``; the caller disposes the engine.

    The module-level engine from app.db.postgres is bound to uvicorn's event loop
    and cannot be reused in a new event loop created by _run_async().
    """
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

    from app.core.config import settings

    engine = create_async_engine(
        settings.postgres_url,
        echo=False,
        pool_size=5,
        max_overflow=5,
        pool_pre_ping=True,
    )
    return engine, async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


def _run_async(coro):
    """Run an async coroutine from sync Celery task context.

    Creates a fresh event loop each time to avoid conflicts with
    the module-level SQLAlchemy engine (which may be bound to a
    different loop created by uvicorn).
    """
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


async def _sweep_async() -> dict:
    from app.services.scheduler import run_scheduled_sweep
    from app.services.tracking_service import build_tracking_service

    engine, session_factory = _make_session_factory()
    try:
        summary = await run_scheduled_sweep(session_factory, lambda: build_tracking_service(session_factory))
    finally:
        await engine.dispose()
    return summary.to_dict()


async def _track_business_async(business_id: str) -> dict:
    from app.services.tracking_service import build_tracking_service

    engine, session_factory = _make_session_factory()
    try:
        service = build_tracking_service(session_factory)
        summary = await service.run_tracking_for_business(UUID(business_id), trigger="task")
    finally:
        await engine.dispose()
    return summary.to_dict()


@celery_app.task(name="run_scheduled_tracking")
def run_scheduled_tracking_task():
    """Beat task: run tracking for every business whose check is due."""
    result = _run_async(_sweep_async())
    logger.info("Scheduled sweep done: %s", result)
    return result


@celery_app.task(
    bind=True,
    name="track_business",
    max_retries=1,
    default_retry_delay=300,
)
def track_business_task(self, business_id: str):
    """Celery task: one tracking run for a single business."""
    logger.info("Starting tracking for business %s", business_id)
    try:
        result = _run_async(_track_business_async(business_id))
    except ConfigurationError as exc:
        logger.error("Tracking for business %s not configured: %s", business_id, exc)
        return {"success": False, "results": 0, "errors": 0, "error": str(exc)}
    except Exception as exc:
        logger.error("Tracking failed for business %s: %s", business_id, exc)
        raise self.retry(exc=exc)

    logger.info("Tracking done for business %s: %s", business_id, result)
    return result
