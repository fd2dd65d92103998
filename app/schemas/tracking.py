import uuid

from pydantic import BaseModel, Field


class ManualRunRequest(BaseModel):
    business_id: uuid.UUID


class ManualRunResponse(BaseModel):
    success: bool
    results: int
    errors: int
    remaining_runs: int
    message: str


class QuotaStatusResponse(BaseModel):
    remaining_runs: int
    reset_hours: int


class VisibilityResponse(BaseModel):
    business_id: uuid.UUID
    visibility_score: int = Field(ge=0, le=100)
    appeared_count: int
    successful_checks: int
    failed_checks: int
    total_checks: int
    recommendations: list[str]
    platform_scores: dict[str, int]

    model_config = {"from_attributes": True}


class SweepResponse(BaseModel):
    success: bool
    processed: int
    skipped: int
    errors: int
    message: str
