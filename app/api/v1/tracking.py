"""Tracking API: manual runs, quota status, visibility report."""

import uuid

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.analysis.visibility import get_visibility_report
from app.core.dependencies import get_current_user_id, get_tracking_service
from app.core.exceptions import ForbiddenError, NotFoundError
from app.core.rate_limit import limiter
from app.db.postgres import get_db
from app.models.business import Business
from app.schemas.tracking import (
    ManualRunRequest,
    ManualRunResponse,
    QuotaStatusResponse,
    VisibilityResponse,
)
from app.services.manual_tracking import get_quota_status, run_manual_tracking
from app.services.tracking_service import TrackingService

router = APIRouter(prefix="/tracking", tags=["tracking"])


@router.post("/run-manual", response_model=ManualRunResponse)
@limiter.limit("5/minute")
async def run_manual(
    request: Request,
    body: ManualRunRequest,
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
    service: TrackingService = Depends(get_tracking_service),
):
    """Run tracking now for one of the caller's businesses (2 runs per 24h)."""
    result = await run_manual_tracking(db, user_id, body.business_id, service)
    return ManualRunResponse(**result.to_dict())


@router.get("/check-limit", response_model=QuotaStatusResponse)
async def check_limit(
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    status = await get_quota_status(db, user_id)
    return QuotaStatusResponse(remaining_runs=status.remaining_runs, reset_hours=status.reset_hours)


@router.get("/visibility/{business_id}", response_model=VisibilityResponse)
async def visibility(
    business_id: uuid.UUID,
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    business = await db.get(Business, business_id)
    if business is None:
        raise NotFoundError("Business not found")
    if business.user_id != user_id:
        raise ForbiddenError("Business not found or access denied")

    report = await get_visibility_report(db, business_id)
    if report is None:
        raise NotFoundError("Business not found")
    return VisibilityResponse.model_validate(report)
