from app.models.app_config import AppConfig
from app.models.business import Business
from app.models.manual_tracking_run import ManualTrackingRun
from app.models.tracked_prompt import TrackedPrompt
from app.models.tracking_result import TrackingResult
from app.models.user_subscription import UserSubscription

__all__ = [
    "AppConfig",
    "Business",
    "ManualTrackingRun",
    "TrackedPrompt",
    "TrackingResult",
    "UserSubscription",
]
