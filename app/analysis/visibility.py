"""Visibility score and improvement recommendations.

Score over a window of the most recent results:

    score = floor(100 * appeared / successful + 0.5)     (0 when successful == 0)

Halves round up, so 1 of 8 is 13.

Failed checks are excluded from both sides and reported separately.
"""

from __future__ import annotations

import logging
import math
import uuid
from collections.abc import Sequence
from dataclasses import dataclass, field

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.business import Business
from app.models.tracked_prompt import TrackedPrompt
from app.models.tracking_result import STATUS_SUCCESS, TrackingResult

logger = logging.getLogger(__name__)

RESULT_WINDOW = 20
MAX_RECOMMENDATIONS = 5

# (upper bound exclusive, tips)
_TIERS: list[tuple[int, list[str]]] = [
    (
        20,
        [
            "Add more online reviews mentioning your service and location",
            "Create a blog post about {industry} in {location}",
            "Ensure your website clearly states your location and services",
            "Get listed in local business directories (Google Business, Yelp)",
            "Ask satisfied customers to mention you in online forums",
        ],
    ),
    (
        50,
        [
            "Increase your Google review count - aim for 20+ reviews",
            "Add FAQ section to your website answering common questions",
            "Create case studies or portfolio showcasing your work",
            "Engage in local community discussions online",
        ],
    ),
    (
        70,
        [
            "Maintain your current review momentum",
            "Expand content to cover more service variations",
            "Build backlinks from local websites and blogs",
        ],
    ),
]

EXCELLENT_MESSAGE = "Great visibility! Keep up your current strategy. You're appearing in most AI search results."

INDUSTRY_TIPS: dict[str, str] = {
    "Home Renovation/Remodeling": "Share before/after photos on your website and social media",
    "Photography (Wedding, Event, Portrait)": "Build a strong portfolio showcasing your unique style",
    "Real Estate Agent (US) / Property Agent (SG)": "Create neighborhood guides and market reports",
    "HVAC Services (US) / Air Conditioning Services (SG)": "Highlight emergency services and fast response times",
    "Plumbing Services": "Emphasize licensing, insurance, and certifications",
    "Consulting (Business, Marketing, IT)": "Publish thought leadership content in your niche",
    "Web Design/Development": "Showcase client case studies with measurable results",
    "Landscaping/Lawn Care": "Display seasonal project galleries and testimonials",
}


@dataclass
class VisibilityReport:
    business_id: uuid.UUID
    visibility_score: int
    appeared_count: int
    successful_checks: int
    failed_checks: int
    total_checks: int
    recommendations: list[str] = field(default_factory=list)
    platform_scores: dict[str, int] = field(default_factory=dict)


def compute_visibility_score(results: Sequence[TrackingResult]) -> tuple[int, int, int]:
    """Return (score, appeared, successful) for *results*."""
    successful = [r for r in results if r.status == STATUS_SUCCESS]
    appeared = sum(1 for r in successful if r.appeared is True)
    if not successful:
        return 0, 0, 0
    return math.floor(100 * appeared / len(successful) + 0.5), appeared, len(successful)


def get_recommendations(score: int, industry: str, location: str) -> list[str]:
    """Tiered tips for *score*, plus one industry tip, capped at 5."""
    for upper, tips in _TIERS:
        if score < upper:
            recommendations = [t.format(industry=industry.lower(), location=location) for t in tips]
            break
    else:
        return [EXCELLENT_MESSAGE]

    tip = INDUSTRY_TIPS.get(industry)
    if tip:
        recommendations.append(tip)
    return recommendations[:MAX_RECOMMENDATIONS]


async def get_visibility_report(db: AsyncSession, business_id: uuid.UUID) -> VisibilityReport | None:
    """Build the report over the latest results of the business's active prompts.

    Returns None when the business does not exist.
    """
    business = await db.get(Business, business_id)
    if business is None:
        return None

    rows = await db.execute(
        select(TrackingResult)
        .join(TrackedPrompt, TrackedPrompt.id == TrackingResult.prompt_id)
        .where(
            TrackedPrompt.business_id == business_id,
            TrackedPrompt.is_active == True,  # noqa: E712
        )
        .order_by(TrackingResult.tracked_at.desc())
        .limit(RESULT_WINDOW)
    )
    results = list(rows.scalars().all())

    score, appeared, successful = compute_visibility_score(results)

    platform_scores: dict[str, int] = {}
    for platform in sorted({r.ai_platform for r in results}):
        platform_scores[platform] = compute_visibility_score([r for r in results if r.ai_platform == platform])[0]

    logger.debug("Visibility for business %s: %d%% (%d/%d)", business_id, score, appeared, successful)

    return VisibilityReport(
        business_id=business_id,
        visibility_score=score,
        appeared_count=appeared,
        successful_checks=successful,
        failed_checks=len(results) - successful,
        total_checks=len(results),
        recommendations=get_recommendations(score, business.industry, business.location),
        platform_scores=platform_scores,
    )
