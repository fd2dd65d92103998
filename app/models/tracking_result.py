import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, CheckConstraint, DateTime, ForeignKey, Index, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base

STATUS_SUCCESS = "success"
STATUS_FAILED = "failed"


class TrackingResult(Base):
    """One AI backend check for one prompt. Append-only.

    Build rows with :meth:`success` / :meth:`failure` so that a failed row never
    carries ``appeared``, ``position`` or response text.
    """

    __tablename__ = "tracking_results"
    __table_args__ = (
        CheckConstraint(
            "(status = 'failed' AND appeared IS NULL AND position IS NULL AND full_response_text IS NULL)"
            " OR (status = 'success' AND appeared IS NOT NULL)",
            name="ck_tracking_result_status_shape",
        ),
        Index("ix_tracking_results_prompt_tracked_at", "prompt_id", "tracked_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    prompt_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("tracked_prompts.id", ondelete="CASCADE"), nullable=False
    )
    ai_platform: Mapped[str] = mapped_column(String(20), nullable=False)  # chatgpt | perplexity
    appeared: Mapped[bool | None] = mapped_column(Boolean, nullable=True)  # NULL only when status=failed
    position: Mapped[int | None] = mapped_column(Integer, nullable=True)  # 1-indexed rank
    full_response_text: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(String(10), nullable=False)  # success | failed
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    tracked_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    # Relationships
    prompt: Mapped["TrackedPrompt"] = relationship("TrackedPrompt", back_populates="results")  # noqa: F821

    @classmethod
    def success(
        cls,
        *,
        prompt_id: uuid.UUID,
        ai_platform: str,
        appeared: bool,
        position: int | None,
        response_text: str,
    ) -> "TrackingResult":
        return cls(
            prompt_id=prompt_id,
            ai_platform=ai_platform,
            appeared=appeared,
            position=position,
            full_response_text=response_text,
            status=STATUS_SUCCESS,
            error_message=None,
            tracked_at=datetime.now(timezone.utc),
        )

    @classmethod
    def failure(cls, *, prompt_id: uuid.UUID, ai_platform: str, error_message: str) -> "TrackingResult":
        return cls(
            prompt_id=prompt_id,
            ai_platform=ai_platform,
            appeared=None,
            position=None,
            full_response_text=None,
            status=STATUS_FAILED,
            error_message=error_message,
            tracked_at=datetime.now(timezone.utc),
        )
