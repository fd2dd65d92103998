"""AI Query Client: one chat-completion call to a named backend, with retries.

All backends go through a single OpenRouter-compatible endpoint; the backend
only selects the downstream model.

Retry policy:
  - transport errors (timeouts included), HTTP 429 and HTTP 5xx are retried
  - any other non-2xx status is terminal
  - a 2xx whose body cannot be parsed is terminal
  - between attempts the client sleeps per the configured backoff table
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

import httpx

from app.core.metrics import AI_QUERIES
from app.gateway.types import AiBackend, AiGatewayConfig, QueryResult

logger = logging.getLogger(__name__)

SleepFunc = Callable[[float], Awaitable[Any]]


class _RetryableError(Exception):
    pass


class _TerminalError(Exception):
    pass


def _error_message(resp: httpx.Response) -> str:
    """Prefer the gateway's ``error.message``, fall back to the status line."""
    try:
        body = resp.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
    return f"HTTP {resp.status_code}: {resp.reason_phrase}"


def _parse_completion(resp: httpx.Response) -> QueryResult:
    data = resp.json()
    if not isinstance(data, dict):
        raise ValueError("response body is not a JSON object")

    content = None
    choices = data.get("choices")
    if choices:
        message = choices[0].get("message") or {}
        content = message.get("content")

    usage = data.get("usage") or {}
    tokens = usage.get("total_tokens")
    return QueryResult.ok(content, int(tokens) if tokens is not None else None)


class AiQueryClient:
    """Sends prompts to the AI gateway.

    Holds only immutable configuration; each ``query`` opens its own HTTP
    client, so concurrent calls share nothing.
    """

    def __init__(
        self,
        config: AiGatewayConfig,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        sleep: SleepFunc = asyncio.sleep,
    ):
        self.config = config
        self._transport = transport
        self._sleep = sleep

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.config.api_key}",
            "Content-Type": "application/json",
            "HTTP-Referer": self.config.site_url,
            "X-Title": self.config.app_name,
        }

    def _payload(self, prompt_text: str, backend: AiBackend) -> dict:
        return {
            "model": self.config.models[backend],
            "messages": [{"role": "user", "content": prompt_text}],
            "temperature": self.config.temperature,
            "max_tokens": self.config.max_tokens,
        }

    async def _attempt(self, client: httpx.AsyncClient, payload: dict) -> QueryResult:
        try:
            resp = await client.post(self.config.api_url, json=payload, headers=self._headers())
        except httpx.TimeoutException as e:
            raise _RetryableError(f"Request timed out after {self.config.timeout_seconds:g}s") from e
        except httpx.TransportError as e:
            raise _RetryableError(f"{type(e).__name__}: {e}") from e

        if resp.status_code == 429 or resp.status_code >= 500:
            raise _RetryableError(_error_message(resp))
        if not resp.is_success:
            raise _TerminalError(_error_message(resp))

        try:
            return _parse_completion(resp)
        except (ValueError, TypeError, KeyError, IndexError, AttributeError) as e:
            raise _TerminalError(f"Failed to parse response: {e}") from e

    async def query(self, prompt_text: str, backend: AiBackend | str) -> QueryResult:
        """Ask *backend* one prompt. Never raises for upstream failures."""
        backend = AiBackend(backend)
        payload = self._payload(prompt_text, backend)
        max_attempts = self.config.max_attempts
        last_error = ""

        async with httpx.AsyncClient(
            timeout=self.config.timeout_seconds,
            transport=self._transport,
        ) as client:
            for attempt in range(1, max_attempts + 1):
                try:
                    result = await self._attempt(client, payload)
                except _TerminalError as e:
                    message = str(e)
                    outcome = "parse_error" if message.startswith("Failed to parse") else "terminal"
                    AI_QUERIES.labels(backend=backend.value, outcome=outcome).inc()
                    logger.warning("AI query to %s failed (no retry): %s", backend.value, message)
                    return QueryResult.fail(message)
                except _RetryableError as e:
                    last_error = str(e)
                    AI_QUERIES.labels(backend=backend.value, outcome="retryable").inc()
                    if attempt < max_attempts:
                        delay = self.config.backoff_for(attempt)
                        logger.warning(
                            "AI query to %s failed (attempt %d/%d), retrying in %.1fs: %s",
                            backend.value,
                            attempt,
                            max_attempts,
                            delay,
                            last_error,
                        )
                        await self._sleep(delay)
                    continue

                AI_QUERIES.labels(backend=backend.value, outcome="success").inc()
                logger.debug(
                    "AI query to %s succeeded on attempt %d (tokens=%s)",
                    backend.value,
                    attempt,
                    result.tokens_used,
                )
                return result

        AI_QUERIES.labels(backend=backend.value, outcome="exhausted").inc()
        logger.error("AI query to %s exhausted %d attempts: %s", backend.value, max_attempts, last_error)
        return QueryResult.fail(f"Failed after {max_attempts} attempts: {last_error}")
