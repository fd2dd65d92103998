from fastapi import APIRouter

from app.api.v1.businesses import router as businesses_router
from app.api.v1.cron import router as cron_router
from app.api.v1.tracking import router as tracking_router

api_v1_router = APIRouter(prefix="/api/v1")
api_v1_router.include_router(tracking_router)
api_v1_router.include_router(businesses_router)
api_v1_router.include_router(cron_router)
