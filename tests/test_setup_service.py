"""Tests for business setup (prompt storage, trial start, first check)."""

from datetime import timedelta

import pytest
from sqlalchemy import select

from app.core.exceptions import ConfigurationError
from app.models.tracked_prompt import TrackedPrompt
from app.models.user_subscription import UserSubscription
from app.services.quota import as_utc, utcnow
from app.services.setup_service import setup_business_prompts


class TestSetupBusinessPrompts:
    async def test_stores_prompts_and_starts_trial(self, db, business):
        before = utcnow()
        prompts = await setup_business_prompts(db, business)

        assert len(prompts) == 10
        assert prompts[0].prompt_text == "I need plumbing in Austin, who should I hire?"

        stored = (
            await db.execute(
                select(TrackedPrompt)
                .where(TrackedPrompt.business_id == business.id)
                .order_by(TrackedPrompt.created_at)
            )
        ).scalars().all()
        assert [p.prompt_text for p in stored] == [p.prompt_text for p in prompts]
        assert all(p.is_active for p in stored)

        sub = (
            await db.execute(select(UserSubscription).where(UserSubscription.user_id == business.user_id))
        ).scalar_one()
        assert sub.subscription_status == "trial"
        assert as_utc(sub.trial_ends_at) - before >= timedelta(days=14)

        first_check = as_utc(business.next_check_date) - before
        assert timedelta(hours=24) <= first_check < timedelta(hours=24, minutes=1)

    async def test_rerun_deactivates_previous_prompts(self, db, business):
        await setup_business_prompts(db, business)
        await setup_business_prompts(db, business)

        rows = (await db.execute(select(TrackedPrompt).where(TrackedPrompt.business_id == business.id))).scalars().all()
        assert len(rows) == 20
        assert sum(1 for p in rows if p.is_active) == 10

    async def test_existing_subscription_kept(self, db, business):
        db.add(
            UserSubscription(
                user_id=business.user_id,
                subscription_status="active",
                trial_ends_at=utcnow() - timedelta(days=30),
            )
        )
        await db.commit()

        await setup_business_prompts(db, business)

        subs = (
            await db.execute(select(UserSubscription).where(UserSubscription.user_id == business.user_id))
        ).scalars().all()
        assert len(subs) == 1
        assert subs[0].subscription_status == "active"

    async def test_unmapped_industry(self, db, business):
        business.industry = "Dog Grooming"
        with pytest.raises(ConfigurationError):
            await setup_business_prompts(db, business)
