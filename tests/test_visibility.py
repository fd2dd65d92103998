"""Tests for the visibility score and recommendations."""

import uuid
from datetime import datetime, timedelta, timezone

from app.analysis.visibility import (
    EXCELLENT_MESSAGE,
    compute_visibility_score,
    get_recommendations,
    get_visibility_report,
)
from app.models.tracked_prompt import TrackedPrompt
from app.models.tracking_result import TrackingResult


def _ok(appeared: bool, platform: str = "chatgpt") -> TrackingResult:
    return TrackingResult.success(
        prompt_id=uuid.uuid4(),
        ai_platform=platform,
        appeared=appeared,
        position=1 if appeared else None,
        response_text="...",
    )


def _failed(platform: str = "chatgpt") -> TrackingResult:
    return TrackingResult.failure(prompt_id=uuid.uuid4(), ai_platform=platform, error_message="HTTP 503")


class TestComputeVisibilityScore:
    def test_no_results(self):
        assert compute_visibility_score([]) == (0, 0, 0)

    def test_only_failures(self):
        assert compute_visibility_score([_failed(), _failed()]) == (0, 0, 0)

    def test_three_of_twelve(self):
        results = [_ok(True)] * 3 + [_ok(False)] * 9
        assert compute_visibility_score(results) == (25, 3, 12)

    def test_failures_excluded_from_denominator(self):
        results = [_ok(True), _ok(False), _failed(), _failed()]
        assert compute_visibility_score(results)[0] == 50

    def test_rounding(self):
        results = [_ok(True)] * 2 + [_ok(False)]
        assert compute_visibility_score(results)[0] == 67

    def test_half_rounds_up(self):
        assert compute_visibility_score([_ok(True)] + [_ok(False)] * 7)[0] == 13
        assert compute_visibility_score([_ok(True)] * 2 + [_ok(False)] * 14)[0] == 13
        assert compute_visibility_score([_ok(True)] * 5 + [_ok(False)] * 3)[0] == 63


class TestRecommendations:
    def test_poor_visibility_capped_at_five(self):
        recs = get_recommendations(10, "Plumbing Services", "Austin, TX")
        assert len(recs) == 5
        assert recs[1] == "Create a blog post about plumbing services in Austin, TX"
        assert "Emphasize licensing, insurance, and certifications" not in recs

    def test_below_average_includes_industry_tip(self):
        recs = get_recommendations(35, "Landscaping/Lawn Care", "Singapore")
        assert len(recs) == 5
        assert recs[0] == "Increase your Google review count - aim for 20+ reviews"
        assert recs[-1] == "Display seasonal project galleries and testimonials"

    def test_good(self):
        recs = get_recommendations(60, "Web Design/Development", "Austin, TX")
        assert recs == [
            "Maintain your current review momentum",
            "Expand content to cover more service variations",
            "Build backlinks from local websites and blogs",
            "Showcase client case studies with measurable results",
        ]

    def test_unknown_industry_has_no_tip(self):
        assert len(get_recommendations(60, "Dog Grooming", "Austin, TX")) == 3

    def test_excellent(self):
        assert get_recommendations(70, "Plumbing Services", "Austin, TX") == [EXCELLENT_MESSAGE]


class TestGetVisibilityReport:
    async def test_unknown_business(self, db):
        assert await get_visibility_report(db, uuid.uuid4()) is None

    async def test_report_over_latest_window(self, db, business):
        prompt = TrackedPrompt(business_id=business.id, prompt_text="best plumber?")
        inactive = TrackedPrompt(business_id=business.id, prompt_text="retired prompt", is_active=False)
        db.add_all([prompt, inactive])
        await db.flush()

        base = datetime.now(timezone.utc) - timedelta(days=1)
        rows = []
        # 5 oldest rows fall outside the 20-row window
        for _ in range(5):
            rows.append(
                TrackingResult.success(
                    prompt_id=prompt.id, ai_platform="chatgpt", appeared=True, position=1, response_text="x"
                )
            )
        for i in range(20):
            platform = "chatgpt" if i % 2 == 0 else "perplexity"
            if i < 4:
                row = TrackingResult.failure(prompt_id=prompt.id, ai_platform=platform, error_message="timeout")
            else:
                row = TrackingResult.success(
                    prompt_id=prompt.id, ai_platform=platform, appeared=i < 8, position=None, response_text="x"
                )
            rows.append(row)
        for offset, row in enumerate(rows):
            row.tracked_at = base + timedelta(minutes=offset)
        # results of inactive prompts are ignored
        rows.append(
            TrackingResult.success(
                prompt_id=inactive.id, ai_platform="chatgpt", appeared=True, position=1, response_text="x"
            )
        )
        db.add_all(rows)
        await db.commit()

        report = await get_visibility_report(db, business.id)

        assert report.total_checks == 20
        assert report.failed_checks == 4
        assert report.successful_checks == 16
        assert report.appeared_count == 4
        assert report.visibility_score == 25
        assert set(report.platform_scores) == {"chatgpt", "perplexity"}
        assert len(report.recommendations) == 4 + 1
