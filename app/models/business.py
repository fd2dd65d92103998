import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base


class Business(Base):
    """A tenant's business profile whose AI visibility is tracked."""

    __tablename__ = "businesses"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)
    business_name: Mapped[str] = mapped_column(String(255), nullable=False)
    industry: Mapped[str] = mapped_column(String(100), nullable=False)  # one of prompts.generator.INDUSTRIES
    country: Mapped[str] = mapped_column(String(100), nullable=False, default="United States")
    location: Mapped[str] = mapped_column(String(255), nullable=False)  # "Austin, TX" | "Singapore"
    website_url: Mapped[str | None] = mapped_column(String(500), nullable=True)

    # Scheduling, written by setup and by the tracking orchestrator only
    last_checked_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    next_check_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc), index=True
    )

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    # Relationships
    prompts: Mapped[list["TrackedPrompt"]] = relationship(  # noqa: F821
        "TrackedPrompt", back_populates="business", cascade="all, delete-orphan"
    )
