"""User-triggered tracking runs, gated by the rolling manual-run quota."""

import logging
import uuid
from dataclasses import asdict, dataclass
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import ForbiddenError, QuotaExceededError, TrackingFailedError
from app.models.business import Business
from app.models.manual_tracking_run import ManualTrackingRun
from app.services.quota import QuotaPolicy, QuotaStatus, compute_quota_status, utcnow
from app.services.tracking_service import TrackingService

logger = logging.getLogger(__name__)


@dataclass
class ManualRunResult:
    success: bool
    results: int
    errors: int
    remaining_runs: int
    message: str

    def to_dict(self) -> dict:
        return asdict(self)


async def _recent_run_times(db: AsyncSession, user_id: uuid.UUID, since: datetime) -> list[datetime]:
    rows = await db.execute(
        select(ManualTrackingRun.run_at)
        .where(ManualTrackingRun.user_id == user_id, ManualTrackingRun.run_at >= since)
        .order_by(ManualTrackingRun.run_at.asc())
    )
    return list(rows.scalars().all())


def _quota_message(policy: QuotaPolicy, hours: int) -> str:
    unit = "hour" if hours == 1 else "hours"
    return (
        f"Rate limit exceeded. You can run manual tracking {policy.manual_runs_per_window} times per day. "
        f"Try again in {hours} {unit}."
    )


async def get_quota_status(
    db: AsyncSession,
    user_id: uuid.UUID,
    policy: QuotaPolicy | None = None,
) -> QuotaStatus:
    policy = policy or QuotaPolicy.from_settings(settings)
    now = utcnow()
    run_times = await _recent_run_times(db, user_id, now - policy.manual_window)
    return compute_quota_status(run_times, now, policy)


async def run_manual_tracking(
    db: AsyncSession,
    user_id: uuid.UUID,
    business_id: uuid.UUID,
    service: TrackingService,
    policy: QuotaPolicy | None = None,
) -> ManualRunResult:
    """Run tracking now for a business owned by *user_id*.

    Raises:
        ForbiddenError: business missing or owned by another user.
        QuotaExceededError: the user already used all runs in the window.
        TrackingFailedError: the run itself reported failure.
    """
    policy = policy or QuotaPolicy.from_settings(settings)

    business = await db.get(Business, business_id)
    if business is None or business.user_id != user_id:
        raise ForbiddenError("Business not found or access denied")

    now = utcnow()
    try:
        run_times = await _recent_run_times(db, user_id, now - policy.manual_window)
    except SQLAlchemyError as e:
        # Quota log unreadable: let the run through
        logger.error("Failed to read manual run log for user %s: %s", user_id, e)
        await db.rollback()
        run_times = []

    quota = compute_quota_status(run_times, now, policy)
    if quota.exhausted:
        logger.info("Manual run quota exhausted for user %s (reset in %dh)", user_id, quota.reset_hours)
        raise QuotaExceededError(_quota_message(policy, quota.reset_hours), quota.reset_hours)

    summary = await service.run_tracking_for_business(business_id, trigger="manual")
    if not summary.success:
        raise TrackingFailedError(f"Tracking failed: {summary.errors} errors occurred")

    try:
        db.add(ManualTrackingRun(user_id=user_id, business_id=business_id, run_at=utcnow()))
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error("Failed to record manual run for user %s: %s", user_id, e)

    return ManualRunResult(
        success=True,
        results=summary.results,
        errors=summary.errors,
        remaining_runs=max(0, policy.manual_runs_per_window - quota.used_runs - 1),
        message=f"Tracking completed: {summary.results} successful checks, {summary.errors} errors",
    )
