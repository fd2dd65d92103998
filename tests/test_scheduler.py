"""Tests for the scheduled sweep over due businesses."""

import uuid
from contextlib import asynccontextmanager
from datetime import timedelta
from unittest.mock import AsyncMock

import pytest

from app.core.config import settings
from app.models.app_config import AppConfig
from app.models.business import Business
from app.models.user_subscription import UserSubscription
from app.services.quota import utcnow
from app.services.scheduler import run_scheduled_sweep
from app.services.tracking_service import TrackingSummary


@pytest.fixture
def cron_on(monkeypatch):
    monkeypatch.setattr(settings, "cron_enabled", True)


def _factory(success=True, side_effect=None):
    service = AsyncMock()
    if side_effect is not None:
        service.run_tracking_for_business.side_effect = side_effect
    else:
        service.run_tracking_for_business.return_value = TrackingSummary(success=success)
    return service, lambda: service


async def _business(db, *, status: str | None, last_checked_hours: float | None, due: bool = True) -> Business:
    now = utcnow()
    user_id = uuid.uuid4()
    business = Business(
        user_id=user_id,
        business_name=f"Biz {user_id.hex[:6]}",
        industry="Plumbing Services",
        country="United States",
        location="Austin, TX",
        next_check_date=now - timedelta(minutes=5) if due else now + timedelta(days=1),
        last_checked_at=now - timedelta(hours=last_checked_hours) if last_checked_hours is not None else None,
    )
    db.add(business)
    if status is not None:
        db.add(UserSubscription(user_id=user_id, subscription_status=status, trial_ends_at=now + timedelta(days=14)))
    await db.commit()
    return business


class _TrackingSessionFactory:
    """Wraps a session factory and counts sessions that are still open."""

    def __init__(self, factory):
        self.factory = factory
        self.open = 0

    @asynccontextmanager
    async def __call__(self):
        async with self.factory() as session:
            self.open += 1
            try:
                yield session
            finally:
                self.open -= 1


class TestRunScheduledSweep:
    async def test_disabled_by_settings(self, db, session_factory, monkeypatch):
        monkeypatch.setattr(settings, "cron_enabled", False)
        await _business(db, status="trial", last_checked_hours=None)
        service, factory = _factory()

        summary = await run_scheduled_sweep(session_factory, factory)

        assert summary.message == "Cron disabled"
        assert (summary.processed, summary.skipped, summary.errors) == (0, 0, 0)
        service.run_tracking_for_business.assert_not_awaited()

    async def test_disabled_by_app_config(self, db, session_factory, cron_on):
        db.add(AppConfig(key="cron_enabled", value="false"))
        await _business(db, status="trial", last_checked_hours=None)
        service, factory = _factory()

        summary = await run_scheduled_sweep(session_factory, factory)

        assert summary.message == "Cron disabled"
        service.run_tracking_for_business.assert_not_awaited()

    async def test_app_config_true_allows_run(self, db, session_factory, cron_on):
        db.add(AppConfig(key="cron_enabled", value="true"))
        await _business(db, status="trial", last_checked_hours=None)
        _, factory = _factory()

        summary = await run_scheduled_sweep(session_factory, factory)
        assert summary.processed == 1

    async def test_nothing_due(self, db, session_factory, cron_on):
        await _business(db, status="trial", last_checked_hours=None, due=False)
        service, factory = _factory()

        summary = await run_scheduled_sweep(session_factory, factory)

        assert summary.message == "No businesses need tracking"
        service.run_tracking_for_business.assert_not_awaited()

    async def test_mixed_sweep(self, db, session_factory, cron_on):
        trial_due = await _business(db, status="trial", last_checked_hours=25)
        await _business(db, status="trial", last_checked_hours=5)  # too recent for trial
        paid_due = await _business(db, status="active", last_checked_hours=200)
        await _business(db, status="active", last_checked_hours=48)  # too recent for paid
        await _business(db, status="canceled", last_checked_hours=100)  # non-trial cadence
        await _business(db, status=None, last_checked_hours=None)  # no subscription
        service, factory = _factory()

        summary = await run_scheduled_sweep(session_factory, factory)

        assert summary.processed == 2
        assert summary.skipped == 4
        assert summary.errors == 0
        assert summary.message == "Processed 2 businesses, 0 errors, 4 skipped"
        tracked = {call.args[0] for call in service.run_tracking_for_business.await_args_list}
        assert tracked == {trial_due.id, paid_due.id}
        for call in service.run_tracking_for_business.await_args_list:
            assert call.kwargs == {"trigger": "scheduled"}

    async def test_failed_run_counts_as_error(self, db, session_factory, cron_on):
        await _business(db, status="trial", last_checked_hours=None)
        _, factory = _factory(success=False)

        summary = await run_scheduled_sweep(session_factory, factory)
        assert summary.processed == 0
        assert summary.errors == 1

    async def test_exception_is_isolated_per_business(self, db, session_factory, cron_on):
        await _business(db, status="trial", last_checked_hours=None)
        await _business(db, status="trial", last_checked_hours=None)
        _, factory = _factory(side_effect=[RuntimeError("boom"), TrackingSummary(success=True)])

        summary = await run_scheduled_sweep(session_factory, factory)
        assert summary.errors == 1
        assert summary.processed == 1

    async def test_session_closed_before_tracking_runs(self, db, session_factory, cron_on):
        await _business(db, status="trial", last_checked_hours=None)
        await _business(db, status="active", last_checked_hours=None)
        sessions = _TrackingSessionFactory(session_factory)
        open_during_run = []

        async def run(business_id, trigger):
            open_during_run.append(sessions.open)
            return TrackingSummary(success=True)

        _, factory = _factory(side_effect=run)

        summary = await run_scheduled_sweep(sessions, factory)

        assert summary.processed == 2
        assert open_during_run == [0, 0]

    async def test_summary_dict(self, db, session_factory, cron_on):
        _, factory = _factory()
        summary = await run_scheduled_sweep(session_factory, factory)
        assert summary.to_dict() == {
            "success": True,
            "processed": 0,
            "skipped": 0,
            "errors": 0,
            "message": "No businesses need tracking",
        }
