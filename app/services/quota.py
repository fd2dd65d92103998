"""Rate limiter / scheduler gate.

Two rules, both pure functions over timestamps:
  - manual runs: at most N per rolling window (default 2 per 24h) per user
  - scheduled runs: a business is re-checked only after its tier's cadence
    (trial every 24h, every other status every 168h)
"""

from __future__ import annotations

import math
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from app.core.config import Settings
from app.models.user_subscription import SUBSCRIPTION_TRIAL


def as_utc(dt: datetime) -> datetime:
    """Treat naive datetimes (some drivers drop tzinfo) as UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class QuotaPolicy:
    manual_runs_per_window: int = 2
    manual_window: timedelta = timedelta(hours=24)
    trial_interval: timedelta = timedelta(hours=24)
    paid_interval: timedelta = timedelta(hours=168)

    @classmethod
    def from_settings(cls, settings: Settings) -> QuotaPolicy:
        return cls(
            manual_runs_per_window=settings.manual_runs_per_window,
            manual_window=timedelta(hours=settings.manual_run_window_hours),
            trial_interval=timedelta(hours=settings.trial_check_interval_hours),
            paid_interval=timedelta(hours=settings.paid_check_interval_hours),
        )


@dataclass
class QuotaStatus:
    used_runs: int
    remaining_runs: int
    reset_hours: int  # hours until the oldest run in the window expires, 0 if none

    @property
    def exhausted(self) -> bool:
        return self.remaining_runs <= 0


def compute_quota_status(run_times: Iterable[datetime], now: datetime, policy: QuotaPolicy) -> QuotaStatus:
    """Quota state given the user's manual run timestamps."""
    window_start = now - policy.manual_window
    in_window = sorted(t for t in (as_utc(r) for r in run_times) if t >= window_start)

    used = len(in_window)
    remaining = max(0, policy.manual_runs_per_window - used)

    reset_hours = 0
    if in_window:
        expires_at = in_window[0] + policy.manual_window
        reset_hours = max(0, math.ceil((expires_at - now).total_seconds() / 3600))

    return QuotaStatus(used_runs=used, remaining_runs=remaining, reset_hours=reset_hours)


def check_interval_for(subscription_status: str, policy: QuotaPolicy) -> timedelta:
    if subscription_status == SUBSCRIPTION_TRIAL:
        return policy.trial_interval
    return policy.paid_interval


def is_due_for_check(
    last_checked_at: datetime | None,
    subscription_status: str,
    now: datetime,
    policy: QuotaPolicy,
) -> bool:
    """True when a scheduled run may proceed for the business."""
    if last_checked_at is None:
        return True
    return now - as_utc(last_checked_at) >= check_interval_for(subscription_status, policy)
