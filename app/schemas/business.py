import uuid
from datetime import datetime

from pydantic import BaseModel


class TrackedPromptResponse(BaseModel):
    id: uuid.UUID
    prompt_text: str
    is_active: bool

    model_config = {"from_attributes": True}


class BusinessSetupResponse(BaseModel):
    business_id: uuid.UUID
    next_check_date: datetime
    prompts: list[TrackedPromptResponse]
