"""Scheduled sweep: run tracking for every business whose check is due."""

import logging
from collections.abc import Callable
from dataclasses import asdict, dataclass

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.config import settings
from app.models.app_config import AppConfig
from app.models.business import Business
from app.models.user_subscription import UserSubscription
from app.services.quota import QuotaPolicy, is_due_for_check, utcnow
from app.services.tracking_service import TrackingService

logger = logging.getLogger(__name__)

CRON_ENABLED_KEY = "cron_enabled"


@dataclass
class SweepSummary:
    success: bool = True
    processed: int = 0
    skipped: int = 0
    errors: int = 0
    message: str = ""

    def to_dict(self) -> dict:
        return asdict(self)


async def is_cron_enabled(session: AsyncSession) -> bool:
    """Environment switch first, then the optional app_config override."""
    if not settings.cron_enabled:
        logger.info("Scheduled tracking disabled via settings")
        return False

    row = await session.execute(select(AppConfig.value).where(AppConfig.key == CRON_ENABLED_KEY))
    value = row.scalar_one_or_none()
    if value is not None and value != "true":
        logger.info("Scheduled tracking disabled via app_config")
        return False
    return True


async def run_scheduled_sweep(
    session_factory: async_sessionmaker[AsyncSession],
    service_factory: Callable[[], TrackingService],
    policy: QuotaPolicy | None = None,
) -> SweepSummary:
    policy = policy or QuotaPolicy.from_settings(settings)
    now = utcnow()

    # Read everything up front; the session is closed before any tracking run
    async with session_factory() as session:
        if not await is_cron_enabled(session):
            return SweepSummary(message="Cron disabled")

        rows = await session.execute(
            select(Business.id, Business.last_checked_at, UserSubscription.subscription_status)
            .outerjoin(UserSubscription, UserSubscription.user_id == Business.user_id)
            .where(Business.next_check_date <= now)
        )
        due = rows.all()

    if not due:
        logger.info("No businesses need tracking")
        return SweepSummary(message="No businesses need tracking")

    logger.info("Found %d businesses to check", len(due))
    summary = SweepSummary()
    service: TrackingService | None = None

    for business_id, last_checked_at, subscription_status in due:
        try:
            if subscription_status is None:
                logger.info("No subscription for business %s, skipping", business_id)
                summary.skipped += 1
                continue

            if not is_due_for_check(last_checked_at, subscription_status, now, policy):
                logger.info("Business %s checked too recently (%s), skipping", business_id, subscription_status)
                summary.skipped += 1
                continue

            if service is None:
                service = service_factory()

            result = await service.run_tracking_for_business(business_id, trigger="scheduled")
            if result.success:
                summary.processed += 1
                logger.info(
                    "Business %s processed: %d results, %d errors", business_id, result.results, result.errors
                )
            else:
                summary.errors += 1
                logger.error("Business %s failed: %d errors", business_id, result.errors)
        except Exception:
            summary.errors += 1
            logger.exception("Error processing business %s", business_id)

    summary.message = (
        f"Processed {summary.processed} businesses, {summary.errors} errors, {summary.skipped} skipped"
    )
    logger.info("Sweep summary: %s", summary.message)
    return summary
