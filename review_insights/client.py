"""Anthropic API client abstraction."""
import asyncio

import anthropic
import structlog
from anthropic import AsyncAnthropic

from .errors import (
    CompletionError,
    CompletionTimeout,
    InvalidCredentials,
    RateLimited,
    RequestFailed,
    ServiceUnavailable,
    TransportError,
)
from .prompts import SYSTEM_PROMPT

logger = structlog.get_logger()

DEFAULT_MODEL = "claude-sonnet-4-5"
DEFAULT_TIMEOUT = 45.0
MAX_TOKENS = 2000
TEMPERATURE = 0.3


def map_api_error(error: Exception) -> CompletionError:
    """Translate an SDK or timeout exception into the engine's error taxonomy."""
    if isinstance(error, (asyncio.TimeoutError, anthropic.APITimeoutError)):
        return CompletionTimeout("AI analysis timed out. Please try again with a smaller dataset.")
    if isinstance(error, anthropic.AuthenticationError):
        return InvalidCredentials(
            "Invalid API key. Please check your Anthropic API key configuration.",
            status_code=error.status_code,
        )
    if isinstance(error, anthropic.RateLimitError):
        return RateLimited(
            "API rate limit exceeded. Please try again in a few minutes.",
            status_code=error.status_code,
        )
    if isinstance(error, anthropic.APIStatusError):
        if error.status_code >= 500:
            return ServiceUnavailable(
                "Completion API service unavailable. Please try again later.",
                status_code=error.status_code,
            )
        return RequestFailed(
            f"API request failed: {error.status_code} - {error.message}",
            status_code=error.status_code,
        )
    if isinstance(error, anthropic.APIConnectionError):
        return TransportError(f"Could not reach the completion API: {error}")
    return RequestFailed(f"API request failed: {error}")


class CompletionClient:
    """Wrapper around the Anthropic API with a hard timeout and no retries.

    Retry and fallback decisions belong to the orchestrator, so every call
    makes exactly one attempt and surfaces failures as CompletionError
    subclasses.
    """

    def __init__(
        self,
        api_key: str,
        model: str = DEFAULT_MODEL,
        timeout: float = DEFAULT_TIMEOUT,
        max_concurrent: int = 10,
    ):
        self.client = AsyncAnthropic(api_key=api_key, max_retries=0)
        self.model = model
        self.timeout = timeout
        self.semaphore = asyncio.Semaphore(max_concurrent)

    async def complete(self, prompt: str) -> str:
        """Send one prompt and return the raw completion text."""
        async with self.semaphore:
            try:
                response = await asyncio.wait_for(
                    self.client.messages.create(
                        model=self.model,
                        max_tokens=MAX_TOKENS,
                        temperature=TEMPERATURE,
                        system=SYSTEM_PROMPT,
                        messages=[{"role": "user", "content": prompt}],
                    ),
                    timeout=self.timeout,
                )
            except (asyncio.TimeoutError, anthropic.APIError) as e:
                error = map_api_error(e)
                logger.warning(
                    "Completion call failed",
                    error_type=type(error).__name__,
                    status_code=error.status_code,
                )
                raise error from e

        return "".join(
            block.text for block in response.content if getattr(block, "type", None) == "text"
        ).strip()
