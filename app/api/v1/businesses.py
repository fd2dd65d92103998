"""Business setup endpoint."""

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.dependencies import get_current_user_id
from app.core.exceptions import BadRequestError, ConfigurationError, ForbiddenError, NotFoundError
from app.db.postgres import get_db
from app.models.business import Business
from app.schemas.business import BusinessSetupResponse, TrackedPromptResponse
from app.services.setup_service import setup_business_prompts

router = APIRouter(prefix="/businesses", tags=["businesses"])


@router.post("/{business_id}/setup", response_model=BusinessSetupResponse)
async def setup_business(
    business_id: uuid.UUID,
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Generate the prompt battery and schedule the first check in 24h."""
    business = await db.get(Business, business_id)
    if business is None:
        raise NotFoundError("Business not found")
    if business.user_id != user_id:
        raise ForbiddenError("Business not found or access denied")

    try:
        prompts = await setup_business_prompts(db, business)
    except ConfigurationError as e:
        raise BadRequestError(str(e))

    return BusinessSetupResponse(
        business_id=business.id,
        next_check_date=business.next_check_date,
        prompts=[TrackedPromptResponse.model_validate(p) for p in prompts],
    )
