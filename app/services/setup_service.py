"""Business setup: generate and store the tracked prompts, start the trial."""

import logging
from datetime import timedelta

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import ConfigurationError
from app.models.business import Business
from app.models.tracked_prompt import TrackedPrompt
from app.models.user_subscription import SUBSCRIPTION_TRIAL, UserSubscription
from app.prompts.generator import generate_prompts
from app.services.quota import utcnow

logger = logging.getLogger(__name__)


async def setup_business_prompts(db: AsyncSession, business: Business) -> list[TrackedPrompt]:
    """Store a fresh prompt battery for *business* and schedule its first check.

    Previously active prompts are deactivated, not deleted, so their results
    stay queryable. A tenant without a subscription gets a trial.

    Raises ConfigurationError when the industry/country has no prompt mapping.
    """
    texts = generate_prompts(business.industry, business.country, business.location)
    if not texts:
        raise ConfigurationError(
            f"No prompts for industry {business.industry!r} in {business.country!r}"
        )

    now = utcnow()

    await db.execute(
        update(TrackedPrompt)
        .where(
            TrackedPrompt.business_id == business.id,
            TrackedPrompt.is_active == True,  # noqa: E712
        )
        .values(is_active=False)
    )

    # Stagger created_at so load order matches template order
    prompts = [
        TrackedPrompt(
            business_id=business.id,
            prompt_text=text,
            is_active=True,
            created_at=now + timedelta(microseconds=i),
        )
        for i, text in enumerate(texts)
    ]
    db.add_all(prompts)

    row = await db.execute(select(UserSubscription).where(UserSubscription.user_id == business.user_id))
    if row.scalar_one_or_none() is None:
        db.add(
            UserSubscription(
                user_id=business.user_id,
                subscription_status=SUBSCRIPTION_TRIAL,
                trial_ends_at=now + timedelta(days=settings.trial_length_days),
            )
        )
        logger.info("Started %d-day trial for user %s", settings.trial_length_days, business.user_id)

    business.next_check_date = now + timedelta(hours=settings.first_check_delay_hours)
    await db.commit()

    logger.info("Stored %d prompts for business %s", len(prompts), business.id)
    return prompts
