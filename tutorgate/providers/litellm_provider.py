"""LiteLLM-backed provider adapters.

Every upstream is reached through litellm.acompletion(); the four adapter
variants differ only in how they shape the request for their upstream
(credential handling, system-instruction placement, model override, client
side quota). The shared base handles pre-flight checks, prompt rendering,
timeouts, retry with exponential backoff, and health bookkeeping.
"""

from __future__ import annotations

import asyncio
import logging
import os
import re

import litellm

# Suppress LiteLLM's "Give Feedback / Get Help" and "Provider List" banners
litellm.suppress_debug_info = True

from tutorgate.analysis.concepts import extract_concepts, generate_examples
from tutorgate.errors import ProviderCallError, ProviderUnavailableError
from tutorgate.keys import get_key
from tutorgate.prompts import resolve_mode, system_message, task_prompt
from tutorgate.providers.base import ProviderAdapter
from tutorgate.providers.health import HealthRegistry
from tutorgate.schemas.completion import CompletionRequest, CompletionResult, Task
from tutorgate.schemas.providers import ProviderConfig, RateLimitConfig

logger = logging.getLogger(__name__)

_MAX_RETRIES = 3
_BASE_BACKOFF = 1.0  # seconds

# Errors worth another attempt; anything else fails the call immediately
_TRANSIENT_ERRORS: tuple[type[Exception], ...] = (
    TimeoutError,
    litellm.Timeout,
    litellm.RateLimitError,
    litellm.ServiceUnavailableError,
    litellm.InternalServerError,
    litellm.APIConnectionError,
)

# Whole words only, so "generate" or "moderate" never read as a rate limit
_RATE_LIMIT_RE = re.compile(r"\brate[ _-]?limit|\b429\b")


def _short_error_reason(error: Exception) -> str:
    """Extract a short, user-friendly reason from a LiteLLM error.

    Maps error types and status codes to concise descriptions instead
    of dumping full JSON error payloads.
    """
    error_str = str(error).lower()
    if isinstance(error, litellm.RateLimitError) or _RATE_LIMIT_RE.search(error_str):
        return "rate limit"
    if isinstance(error, litellm.NotFoundError):
        return "model not found"
    if "overloaded" in error_str or "529" in error_str:
        return "overloaded"
    if "timeout" in error_str or isinstance(error, TimeoutError | litellm.Timeout):
        return "timeout"
    if "503" in error_str or "unavailable" in error_str:
        return "service unavailable"
    if "500" in error_str or "internal" in error_str:
        return "server error"
    if "connection" in error_str:
        return "connection error"
    return str(error)[:80]


class LiteLLMAdapter(ProviderAdapter):
    """Shared adapter implementation on top of LiteLLM.

    Subclasses override the request-shaping hooks (_build_messages,
    _build_completion_kwargs) for their upstream's conventions.
    """

    def __init__(
        self,
        config: ProviderConfig,
        health: HealthRegistry,
        *,
        max_retries: int = _MAX_RETRIES,
        base_backoff: float = _BASE_BACKOFF,
    ) -> None:
        super().__init__(config, health)
        self._max_retries = max_retries
        self._base_backoff = base_backoff
        if config.rate_limit is not None and not health.is_quota_limited(config.name):
            health.configure_rate_limit(config.name, config.rate_limit)

    @property
    def model_id(self) -> str:
        """LiteLLM model identifier used for routing."""
        return self._config.model

    async def call(self, request: CompletionRequest) -> CompletionResult:
        """Run one request against the upstream.

        Raises:
            ProviderUnavailableError: A pre-flight check failed; no call made.
            ProviderCallError: The upstream failed after all retries.
        """
        reason = self.unavailable_reason()
        if reason is not None:
            raise ProviderUnavailableError(self.display_name, reason)

        # Count against the quota before dispatch so concurrent races can't burst
        if self.quota_limited:
            self._health.record_attempt(self.name)

        mode = resolve_mode(request.mode, request.content)
        messages = self._build_messages(system_message(mode), self._render_prompt(request))
        kwargs = self._build_completion_kwargs(messages)
        if request.task is Task.COURSE and self._config.json_output:
            kwargs["response_format"] = {"type": "json_object"}

        try:
            response = await self._call_with_retry(kwargs)
            text = self._extract_content(response).strip()
            if not text:
                raise ProviderCallError(self.display_name, "empty response from upstream")
        except ProviderCallError:
            self._health.mark_health(self.name, False)
            raise
        except Exception as e:
            self._health.mark_health(self.name, False)
            raise ProviderCallError(self.display_name, _short_error_reason(e)) from e

        self._health.mark_health(self.name, True)

        concepts: list[str] = []
        examples: list[str] = []
        if request.task is Task.EXPLAIN:
            concepts = extract_concepts(request.content)
            examples = generate_examples(request.content)

        return CompletionResult(
            explanation=text,
            provider=self.name.value,
            concepts=concepts,
            examples=examples,
        )

    # ── Request shaping ───────────────────────────────────────

    def _render_prompt(self, request: CompletionRequest) -> str:
        return task_prompt(
            request.task,
            content=request.content,
            language=request.language,
            output=request.output,
            error=request.error,
            detected_issues=request.detected_issues,
            difficulty=request.difficulty,
        )

    def _build_messages(self, system: str, user: str) -> list[dict[str, str]]:
        return [
            {"role": "system", "content": system},
            {"role": "user", "content": user},
        ]

    def _build_completion_kwargs(self, messages: list[dict[str, str]]) -> dict:
        """Build the kwargs dict for litellm.acompletion."""
        kwargs: dict = {
            "model": self.model_id,
            "messages": messages,
            "timeout": float(self._config.request_timeout),
            "temperature": self._config.temperature,
            "max_tokens": self._config.max_tokens,
        }

        api_key = get_key(self._config.api_key_env)
        if api_key:
            kwargs["api_key"] = api_key

        if self._config.api_base:
            kwargs["api_base"] = self._config.api_base

        return kwargs

    # ── Transport ─────────────────────────────────────────────

    async def _call_with_retry(self, kwargs: dict) -> litellm.ModelResponse:
        """Call litellm.acompletion with exponential backoff retry.

        Retries on transient errors (rate limits, server errors, timeouts).
        Non-retryable errors (auth, invalid request) are raised immediately.

        Raises:
            ProviderCallError: If the call fails for good.
        """
        last_error: Exception | None = None

        for attempt in range(self._max_retries):
            try:
                return await litellm.acompletion(**kwargs)
            except litellm.AuthenticationError:
                raise ProviderCallError(
                    self.display_name,
                    f"authentication failed, check that {self._config.api_key_env} "
                    "is set correctly",
                ) from None
            except litellm.BadRequestError as e:
                raise ProviderCallError(self.display_name, f"bad request: {e}") from e
            except _TRANSIENT_ERRORS as e:
                last_error = e

            if attempt < self._max_retries - 1:
                backoff = self._base_backoff * (2**attempt)
                logger.warning(
                    "Retry %d/%d for %s (%s, backoff: %.1fs)",
                    attempt + 1,
                    self._max_retries,
                    self.display_name,
                    _short_error_reason(last_error),
                    backoff,
                )
                await asyncio.sleep(backoff)

        if isinstance(last_error, litellm.RateLimitError):
            self._health.mark_rate_limited(self.name)
        raise ProviderCallError(
            self.display_name,
            f"failed after {self._max_retries} attempts ({_short_error_reason(last_error)})",
        ) from last_error

    def _extract_content(self, response: litellm.ModelResponse) -> str:
        """Extract text content from a LiteLLM response."""
        if not response.choices:
            return ""
        message = response.choices[0].message
        return message.content or "" if message else ""


class HuggingFaceAdapter(LiteLLMAdapter):
    """Hugging Face inference endpoints.

    Works anonymously on the free tier when no key is set. The hosted
    text-generation models have short contexts and no reliable system role,
    so a one-line persona is folded into the user turn instead of the full
    system instruction.
    """

    _PERSONA = (
        "You are a friendly programming tutor. Answer in simple terms, "
        "with an everyday analogy and a short code example."
    )

    def _build_messages(self, system: str, user: str) -> list[dict[str, str]]:
        return [{"role": "user", "content": f"{self._PERSONA}\n\n{user}"}]


class GeminiAdapter(LiteLLMAdapter):
    """Google Gemini, the quota-limited provider.

    The free tier allows roughly 30 requests a minute, so the adapter always
    carries a client-side request window; providers.toml can tighten it.
    """

    DEFAULT_QUOTA = RateLimitConfig(max_per_window=25, window_seconds=60.0, min_interval=2.0)

    def __init__(self, config: ProviderConfig, health: HealthRegistry, **kwargs) -> None:
        super().__init__(config, health, **kwargs)
        if not health.is_quota_limited(config.name):
            health.configure_rate_limit(config.name, self.DEFAULT_QUOTA)


class MistralAdapter(LiteLLMAdapter):
    """Mistral chat completions; the shared OpenAI-style contract applies as is."""


class OpenAIAdapter(LiteLLMAdapter):
    """OpenAI chat completions. ``OPENAI_MODEL`` overrides the configured model."""

    @property
    def model_id(self) -> str:
        return os.environ.get("OPENAI_MODEL") or self._config.model
