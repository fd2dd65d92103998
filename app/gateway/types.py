"""Core types for the AI query client."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from app.core.config import Settings
from app.core.exceptions import ConfigurationError


class AiBackend(str, Enum):
    """AI chat backends every prompt is asked against."""

    CHATGPT = "chatgpt"
    PERPLEXITY = "perplexity"


# Order matters: per prompt the chatgpt row is written before the perplexity row
TRACKED_BACKENDS: tuple[AiBackend, ...] = (AiBackend.CHATGPT, AiBackend.PERPLEXITY)


@dataclass
class QueryResult:
    """Outcome of one logical query (after all retry attempts)."""

    success: bool
    response_text: str | None = None
    error_message: str | None = None
    tokens_used: int | None = None

    @classmethod
    def ok(cls, response_text: str | None, tokens_used: int | None = None) -> QueryResult:
        return cls(success=True, response_text=response_text, tokens_used=tokens_used)

    @classmethod
    def fail(cls, error_message: str) -> QueryResult:
        return cls(success=False, error_message=error_message)


@dataclass(frozen=True)
class AiGatewayConfig:
    """Everything the client needs, resolved once at construction."""

    api_key: str
    api_url: str
    site_url: str
    app_name: str
    models: dict[AiBackend, str]
    temperature: float = 0.3
    max_tokens: int = 1000
    timeout_seconds: float = 30.0
    max_attempts: int = 3
    backoff_seconds: tuple[float, ...] = field(default=(1.0, 2.0, 4.0))

    def __post_init__(self) -> None:
        if not self.api_key:
            raise ConfigurationError("AI gateway API key is not configured (OPENROUTER_API_KEY)")
        if self.max_attempts < 1:
            raise ConfigurationError("ai_max_attempts must be at least 1")
        missing = [b.value for b in AiBackend if b not in self.models]
        if missing:
            raise ConfigurationError(f"No model configured for backend(s): {', '.join(missing)}")

    @classmethod
    def from_settings(cls, settings: Settings) -> AiGatewayConfig:
        return cls(
            api_key=settings.openrouter_api_key,
            api_url=settings.openrouter_api_url,
            site_url=settings.site_url,
            app_name=settings.app_name,
            models={
                AiBackend.CHATGPT: settings.chatgpt_model,
                AiBackend.PERPLEXITY: settings.perplexity_model,
            },
            temperature=settings.ai_temperature,
            max_tokens=settings.ai_max_tokens,
            timeout_seconds=settings.ai_timeout_seconds,
            max_attempts=settings.ai_max_attempts,
            backoff_seconds=tuple(settings.ai_backoff_seconds),
        )

    def backoff_for(self, attempt: int) -> float:
        """Delay before retrying after *attempt* (1-based) failed."""
        if not self.backoff_seconds:
            return 0.0
        index = min(attempt - 1, len(self.backoff_seconds) - 1)
        return self.backoff_seconds[index]
