"""Tracking orchestrator: one run = every active prompt × every backend.

For each (prompt, backend) check:
  query the AI client → detect the mention → append a tracking_results row.

Each row is committed on its own, so a failing check (upstream error, empty
answer, rejected insert) never discards the rows written before it. Once all
prompts are processed the business's scheduling fields are moved forward.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.analysis.mention_detector import MentionDetector, SupportsQuery
from app.core.config import Settings, settings
from app.core.metrics import TRACKING_CHECKS, TRACKING_RUNS
from app.gateway.client import AiQueryClient
from app.gateway.types import TRACKED_BACKENDS, AiBackend, AiGatewayConfig
from app.models.business import Business
from app.models.tracked_prompt import TrackedPrompt
from app.models.tracking_result import TrackingResult

logger = logging.getLogger(__name__)

CHECK_RECORDED = "recorded"  # success row written
CHECK_FAILED = "failed"  # failed row written (upstream error or empty answer)
CHECK_PERSIST_ERROR = "persist_error"  # row could not be written
CHECK_ERROR = "error"  # unexpected exception while processing the prompt


def _log_context(business_id: uuid.UUID, prompt_id: uuid.UUID, backend: AiBackend) -> dict[str, str]:
    return {"business_id": str(business_id), "prompt_id": str(prompt_id), "backend": backend.value}


@dataclass(frozen=True)
class TrackingPolicy:
    backends: tuple[AiBackend, ...] = TRACKED_BACKENDS
    pacing_seconds: float = 0.5
    recheck_interval: timedelta = timedelta(days=7)

    @classmethod
    def from_settings(cls, settings: Settings) -> TrackingPolicy:
        return cls(
            pacing_seconds=settings.tracking_pacing_seconds,
            recheck_interval=timedelta(days=settings.tracking_interval_days),
        )


@dataclass
class CheckOutcome:
    prompt_id: uuid.UUID
    backend: str
    status: str
    error: str | None = None
    appeared: bool | None = None
    position: int | None = None


@dataclass
class TrackingSummary:
    success: bool = False
    outcomes: list[CheckOutcome] = field(default_factory=list)

    @property
    def results(self) -> int:
        return sum(1 for o in self.outcomes if o.status == CHECK_RECORDED)

    @property
    def errors(self) -> int:
        return sum(1 for o in self.outcomes if o.status != CHECK_RECORDED)

    def to_dict(self) -> dict:
        return {"success": self.success, "results": self.results, "errors": self.errors}


class TrackingService:
    """Runs tracking for one business at a time.

    Holds no per-run state, so one instance can serve concurrent runs of
    different businesses; every run opens its own session.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        client: SupportsQuery,
        detector: MentionDetector | None = None,
        policy: TrackingPolicy | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.session_factory = session_factory
        self.client = client
        self.detector = detector or MentionDetector(client)
        self.policy = policy or TrackingPolicy()
        self._sleep = sleep

    async def run_tracking_for_business(self, business_id: uuid.UUID, trigger: str = "task") -> TrackingSummary:
        summary = TrackingSummary()
        try:
            async with self.session_factory() as session:
                await self._run(session, business_id, summary)
        except Exception:
            logger.exception("Fatal error while tracking business %s", business_id)
            summary.success = False

        TRACKING_RUNS.labels(trigger=trigger, status="success" if summary.success else "failure").inc()
        logger.info(
            "Tracking finished for business %s: success=%s results=%d errors=%d",
            business_id,
            summary.success,
            summary.results,
            summary.errors,
        )
        return summary

    async def _run(self, session: AsyncSession, business_id: uuid.UUID, summary: TrackingSummary) -> None:
        business = await session.get(Business, business_id)
        if business is None:
            logger.error("Business %s not found", business_id)
            return
        business_name = business.business_name

        rows = await session.execute(
            select(TrackedPrompt.id, TrackedPrompt.prompt_text)
            .where(
                TrackedPrompt.business_id == business_id,
                TrackedPrompt.is_active == True,  # noqa: E712
            )
            .order_by(TrackedPrompt.created_at, TrackedPrompt.id)
        )
        prompts = rows.all()
        if not prompts:
            logger.error("No active prompts for business %s", business_id)
            return

        logger.info("Tracking %r: %d prompts × %d backends", business_name, len(prompts), len(self.policy.backends))

        for prompt_id, prompt_text in prompts:
            backend = self.policy.backends[0]
            try:
                for backend in self.policy.backends:
                    outcome = await self._check(session, business_id, business_name, prompt_id, prompt_text, backend)
                    summary.outcomes.append(outcome)
                    await self._sleep(self.policy.pacing_seconds)
            except Exception as e:
                logger.exception(
                    "Unexpected error on prompt %s (%s)",
                    prompt_id,
                    backend.value,
                    extra=_log_context(business_id, prompt_id, backend),
                )
                TRACKING_CHECKS.labels(backend=backend.value, status=CHECK_ERROR).inc()
                summary.outcomes.append(CheckOutcome(prompt_id, backend.value, CHECK_ERROR, str(e)))

        await self._advance_schedule(session, business_id)
        summary.success = True

    async def _check(
        self,
        session: AsyncSession,
        business_id: uuid.UUID,
        business_name: str,
        prompt_id: uuid.UUID,
        prompt_text: str,
        backend: AiBackend,
    ) -> CheckOutcome:
        result = await self.client.query(prompt_text, backend)

        if result.success and result.response_text:
            detection = await self.detector.detect(business_name, result.response_text, backend)
            row = TrackingResult.success(
                prompt_id=prompt_id,
                ai_platform=backend.value,
                appeared=detection.appeared,
                position=detection.position,
                response_text=result.response_text,
            )
            outcome = CheckOutcome(
                prompt_id, backend.value, CHECK_RECORDED, appeared=detection.appeared, position=detection.position
            )
        else:
            if result.success:
                message = f"Empty response from {backend.value}"
            else:
                message = result.error_message or "Unknown error"
            row = TrackingResult.failure(prompt_id=prompt_id, ai_platform=backend.value, error_message=message)
            outcome = CheckOutcome(prompt_id, backend.value, CHECK_FAILED, message)
            logger.warning(
                "Check failed for prompt %s on %s: %s",
                prompt_id,
                backend.value,
                message,
                extra=_log_context(business_id, prompt_id, backend),
            )

        try:
            session.add(row)
            await session.commit()
        except SQLAlchemyError as e:
            await session.rollback()
            logger.error(
                "Failed to save %s result for prompt %s: %s",
                backend.value,
                prompt_id,
                e,
                extra=_log_context(business_id, prompt_id, backend),
            )
            outcome = CheckOutcome(prompt_id, backend.value, CHECK_PERSIST_ERROR, str(e))

        TRACKING_CHECKS.labels(backend=backend.value, status=outcome.status).inc()
        return outcome

    async def _advance_schedule(self, session: AsyncSession, business_id: uuid.UUID) -> None:
        now = datetime.now(timezone.utc)
        next_check = now + self.policy.recheck_interval
        try:
            await session.execute(
                update(Business)
                .where(Business.id == business_id)
                .values(last_checked_at=now, next_check_date=next_check)
            )
            await session.commit()
        except SQLAlchemyError as e:
            await session.rollback()
            logger.error("Failed to update schedule for business %s: %s", business_id, e)
            return
        logger.info("Business %s next check at %s", business_id, next_check.isoformat())


def build_tracking_service(session_factory: async_sessionmaker[AsyncSession]) -> TrackingService:
    """Wire a TrackingService from settings. Raises ConfigurationError without an API key."""
    client = AiQueryClient(AiGatewayConfig.from_settings(settings))
    return TrackingService(session_factory, client, policy=TrackingPolicy.from_settings(settings))
