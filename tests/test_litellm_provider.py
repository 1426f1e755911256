"""Tests for tutorgate.providers.litellm_provider: LiteLLM adapters."""

from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import AsyncMock, patch

import litellm
import pytest

from tutorgate.errors import ProviderCallError, ProviderUnavailableError
from tutorgate.providers.health import HealthRegistry
from tutorgate.providers.litellm_provider import (
    GeminiAdapter,
    HuggingFaceAdapter,
    MistralAdapter,
    OpenAIAdapter,
    _short_error_reason,
)
from tutorgate.schemas.completion import CompletionRequest, Task
from tutorgate.schemas.providers import ProviderConfig, ProviderName, RateLimitConfig

# Shorthand for the mock targets
_ACOMP = "tutorgate.providers.litellm_provider.litellm.acompletion"
_SLEEP = "tutorgate.providers.litellm_provider.asyncio.sleep"


# ── Helpers ───────────────────────────────────────────────────


class FakeClock:
    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now


def _make_config(**overrides) -> ProviderConfig:
    """Create a Mistral ProviderConfig with sensible defaults."""
    defaults = {
        "name": ProviderName.MISTRAL,
        "display_name": "Mistral AI",
        "model": "mistral/mistral-medium-latest",
        "api_key_env": "MISTRAL_API_KEY",
        "priority": 3,
        "request_timeout": 8.0,
    }
    defaults.update(overrides)
    return ProviderConfig(**defaults)


def _make_response(content: str | None = "A list holds items in order.") -> SimpleNamespace:
    """Build a mock LiteLLM ModelResponse-like object."""
    message = SimpleNamespace(content=content, tool_calls=None)
    choice = SimpleNamespace(message=message, finish_reason="stop", index=0)
    return SimpleNamespace(choices=[choice], model="mistral-medium-latest")


def _explain(code: str = "items = []\nitems.append(1)") -> CompletionRequest:
    return CompletionRequest(task=Task.EXPLAIN, content=code)


def _rate_limit_error() -> litellm.RateLimitError:
    return litellm.RateLimitError(message="rate limited", model="test", llm_provider="test")


@pytest.fixture(autouse=True)
def _keys(monkeypatch):
    monkeypatch.setenv("MISTRAL_API_KEY", "sk-test")
    monkeypatch.setenv("GOOGLE_AI_API_KEY", "g-test")
    monkeypatch.setenv("OPENAI_API_KEY", "sk-openai")
    monkeypatch.delenv("HUGGING_FACE_API_KEY", raising=False)
    monkeypatch.delenv("OPENAI_MODEL", raising=False)


@pytest.fixture
def health():
    return HealthRegistry(clock=FakeClock())


@pytest.fixture
def adapter(health):
    return MistralAdapter(_make_config(), health)


# ── call() ────────────────────────────────────────────────────


class TestCall:
    @pytest.mark.asyncio
    async def test_basic_explanation(self, adapter, health):
        with patch(_ACOMP, new_callable=AsyncMock) as mock:
            mock.return_value = _make_response()
            result = await adapter.call(_explain())

        assert result.explanation == "A list holds items in order."
        assert result.provider == "mistral"
        assert "Lists" in result.concepts
        assert result.examples
        assert health.snapshot()["mistral"].is_healthy

    @pytest.mark.asyncio
    async def test_answers_carry_no_concepts(self, adapter):
        request = CompletionRequest(task=Task.ANSWER, content="What is a list?")
        with patch(_ACOMP, new_callable=AsyncMock) as mock:
            mock.return_value = _make_response()
            result = await adapter.call(request)

        assert result.concepts == []
        assert result.examples == []

    @pytest.mark.asyncio
    async def test_system_then_user_message(self, adapter):
        with patch(_ACOMP, new_callable=AsyncMock) as mock:
            mock.return_value = _make_response()
            await adapter.call(_explain("total = 1 + 2"))

        msgs = mock.call_args[1]["messages"]
        assert [m["role"] for m in msgs] == ["system", "user"]
        assert "CodeTutor" in msgs[0]["content"]
        assert "total = 1 + 2" in msgs[1]["content"]

    @pytest.mark.asyncio
    async def test_mode_detected_from_content(self, adapter):
        request = CompletionRequest(task=Task.ANSWER, content="Explain like I'm 5: what is a loop?")
        with patch(_ACOMP, new_callable=AsyncMock) as mock:
            mock.return_value = _make_response()
            await adapter.call(request)

        assert "BEGINNER MODE ACTIVE" in mock.call_args[1]["messages"][0]["content"]

    @pytest.mark.asyncio
    async def test_completion_kwargs(self, adapter):
        with patch(_ACOMP, new_callable=AsyncMock) as mock:
            mock.return_value = _make_response()
            await adapter.call(_explain())

        kwargs = mock.call_args[1]
        assert kwargs["model"] == "mistral/mistral-medium-latest"
        assert kwargs["api_key"] == "sk-test"
        assert kwargs["timeout"] == 8.0
        assert kwargs["max_tokens"] == 2000
        assert "api_base" not in kwargs

    @pytest.mark.asyncio
    async def test_api_base_passed_when_set(self, health):
        adapter = MistralAdapter(_make_config(api_base="https://proxy.local/v1"), health)
        with patch(_ACOMP, new_callable=AsyncMock) as mock:
            mock.return_value = _make_response()
            await adapter.call(_explain())

        assert mock.call_args[1]["api_base"] == "https://proxy.local/v1"


# ── Pre-flight checks ─────────────────────────────────────────


class TestPreflight:
    @pytest.mark.asyncio
    async def test_missing_key(self, adapter, health, monkeypatch):
        monkeypatch.delenv("MISTRAL_API_KEY")

        with patch(_ACOMP, new_callable=AsyncMock) as mock, pytest.raises(
            ProviderUnavailableError, match="MISTRAL_API_KEY",
        ):
            await adapter.call(_explain())

        mock.assert_not_called()
        assert health.snapshot() == {}

    def test_blank_key_counts_as_missing(self, adapter, monkeypatch):
        monkeypatch.setenv("MISTRAL_API_KEY", "   ")
        assert not adapter.configured

    @pytest.mark.asyncio
    async def test_unhealthy_provider_not_called(self, adapter, health):
        health.mark_health("mistral", False)

        with patch(_ACOMP, new_callable=AsyncMock) as mock, pytest.raises(
            ProviderUnavailableError, match="Mistral AI: provider is currently unavailable",
        ):
            await adapter.call(_explain())

        mock.assert_not_called()

    @pytest.mark.asyncio
    async def test_rate_limited_provider_not_called(self, adapter, health):
        health.mark_rate_limited("mistral")

        with patch(_ACOMP, new_callable=AsyncMock) as mock, pytest.raises(
            ProviderUnavailableError, match="rate limited",
        ):
            await adapter.call(_explain())

        mock.assert_not_called()

    @pytest.mark.asyncio
    async def test_quota_rejects_call_past_window(self, health):
        config = _make_config(
            name=ProviderName.GEMINI,
            display_name="Gemini",
            model="gemini/gemini-2.5-flash",
            api_key_env="GOOGLE_AI_API_KEY",
            rate_limit=RateLimitConfig(max_per_window=2, window_seconds=60.0),
        )
        adapter = GeminiAdapter(config, health)

        with patch(_ACOMP, new_callable=AsyncMock) as mock:
            mock.return_value = _make_response()
            await adapter.call(_explain())
            await adapter.call(_explain())
            with pytest.raises(ProviderUnavailableError, match="too many requests"):
                await adapter.call(_explain())

        assert mock.call_count == 2
        assert health.rate_limit_state("gemini").request_count == 2


# ── Retry ─────────────────────────────────────────────────────


class TestRetry:
    @pytest.mark.asyncio
    async def test_retries_on_rate_limit(self, adapter):
        mock_acomp = AsyncMock(side_effect=[_rate_limit_error(), _make_response()])
        with (
            patch(_ACOMP, mock_acomp),
            patch(_SLEEP, new_callable=AsyncMock) as mock_sleep,
        ):
            result = await adapter.call(_explain())

        assert result.provider == "mistral"
        assert mock_acomp.call_count == 2
        mock_sleep.assert_awaited_once_with(1.0)

    @pytest.mark.asyncio
    async def test_backoff_doubles(self, adapter):
        mock_acomp = AsyncMock(side_effect=[
            litellm.InternalServerError(message="server error", model="test", llm_provider="test"),
            litellm.ServiceUnavailableError(message="unavailable", model="test", llm_provider="test"),
            _make_response(),
        ])
        with (
            patch(_ACOMP, mock_acomp),
            patch(_SLEEP, new_callable=AsyncMock) as mock_sleep,
        ):
            await adapter.call(_explain())

        assert mock_acomp.call_count == 3
        assert [c.args[0] for c in mock_sleep.await_args_list] == [1.0, 2.0]

    @pytest.mark.asyncio
    async def test_retries_exhausted(self, adapter, health):
        mock_acomp = AsyncMock(side_effect=_rate_limit_error())
        with (
            patch(_ACOMP, mock_acomp),
            patch(_SLEEP, new_callable=AsyncMock),
            pytest.raises(ProviderCallError, match="Mistral AI: failed after 3 attempts"),
        ):
            await adapter.call(_explain())

        assert mock_acomp.call_count == 3
        assert not health.is_healthy("mistral")
        assert health.is_rate_limited("mistral")

    @pytest.mark.asyncio
    async def test_max_retries_configurable(self, health):
        adapter = MistralAdapter(_make_config(), health, max_retries=1)
        mock_acomp = AsyncMock(side_effect=_rate_limit_error())
        with (
            patch(_ACOMP, mock_acomp),
            patch(_SLEEP, new_callable=AsyncMock) as mock_sleep,
            pytest.raises(ProviderCallError),
        ):
            await adapter.call(_explain())

        assert mock_acomp.call_count == 1
        mock_sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_auth_error_not_retried(self, adapter, health):
        mock_acomp = AsyncMock(side_effect=litellm.AuthenticationError(
            message="bad key", model="test", llm_provider="test",
        ))
        with patch(_ACOMP, mock_acomp), pytest.raises(
            ProviderCallError, match="authentication failed",
        ):
            await adapter.call(_explain())

        assert mock_acomp.call_count == 1
        assert not health.is_healthy("mistral")
        assert not health.is_rate_limited("mistral")

    @pytest.mark.asyncio
    async def test_bad_request_not_retried(self, adapter):
        mock_acomp = AsyncMock(side_effect=litellm.BadRequestError(
            message="invalid params", model="test", llm_provider="test",
        ))
        with patch(_ACOMP, mock_acomp), pytest.raises(ProviderCallError, match="bad request"):
            await adapter.call(_explain())

        assert mock_acomp.call_count == 1


# ── Failure handling ──────────────────────────────────────────


class TestFailures:
    @pytest.mark.asyncio
    async def test_empty_content_is_a_failure(self, adapter, health):
        with patch(_ACOMP, new_callable=AsyncMock) as mock, pytest.raises(
            ProviderCallError, match="empty response",
        ):
            mock.return_value = _make_response(content="   ")
            await adapter.call(_explain())

        assert not health.is_healthy("mistral")

    @pytest.mark.asyncio
    async def test_none_content_is_a_failure(self, adapter):
        with patch(_ACOMP, new_callable=AsyncMock) as mock, pytest.raises(ProviderCallError):
            mock.return_value = _make_response(content=None)
            await adapter.call(_explain())

    @pytest.mark.asyncio
    async def test_no_choices_is_a_failure(self, adapter):
        with patch(_ACOMP, new_callable=AsyncMock) as mock, pytest.raises(ProviderCallError):
            mock.return_value = SimpleNamespace(choices=[], model="test")
            await adapter.call(_explain())

    @pytest.mark.asyncio
    async def test_unexpected_error_wrapped(self, adapter, health):
        with patch(_ACOMP, AsyncMock(side_effect=ValueError("boom"))), pytest.raises(
            ProviderCallError, match="Mistral AI: boom",
        ):
            await adapter.call(_explain())

        assert not health.is_healthy("mistral")


# ── Variants ──────────────────────────────────────────────────


class TestVariants:
    @pytest.mark.asyncio
    async def test_huggingface_works_without_key(self, health):
        config = _make_config(
            name=ProviderName.HUGGINGFACE,
            display_name="Hugging Face",
            model="huggingface/HuggingFaceH4/zephyr-7b-beta",
            api_key_env="HUGGING_FACE_API_KEY",
            key_required=False,
        )
        adapter = HuggingFaceAdapter(config, health)

        with patch(_ACOMP, new_callable=AsyncMock) as mock:
            mock.return_value = _make_response()
            result = await adapter.call(_explain("x = 1"))

        assert result.provider == "huggingface"
        assert "api_key" not in mock.call_args[1]

    @pytest.mark.asyncio
    async def test_huggingface_folds_instruction_into_user_turn(self, health):
        config = _make_config(
            name=ProviderName.HUGGINGFACE,
            display_name="Hugging Face",
            api_key_env="HUGGING_FACE_API_KEY",
            key_required=False,
        )
        adapter = HuggingFaceAdapter(config, health)

        with patch(_ACOMP, new_callable=AsyncMock) as mock:
            mock.return_value = _make_response()
            await adapter.call(_explain("x = 1"))

        msgs = mock.call_args[1]["messages"]
        assert len(msgs) == 1
        assert msgs[0]["role"] == "user"
        assert msgs[0]["content"].startswith("You are a friendly programming tutor.")
        assert "x = 1" in msgs[0]["content"]

    def test_gemini_always_quota_limited(self, health):
        config = _make_config(
            name=ProviderName.GEMINI,
            display_name="Gemini",
            api_key_env="GOOGLE_AI_API_KEY",
        )
        adapter = GeminiAdapter(config, health)

        state = health.rate_limit_state("gemini")
        assert adapter.quota_limited
        assert state.max_per_window == 25
        assert state.min_interval == 2.0

    @pytest.mark.asyncio
    async def test_openai_model_override(self, health, monkeypatch):
        monkeypatch.setenv("OPENAI_MODEL", "gpt-4.1-mini")
        config = _make_config(
            name=ProviderName.OPENAI,
            display_name="OpenAI",
            model="gpt-4o-mini",
            api_key_env="OPENAI_API_KEY",
        )
        adapter = OpenAIAdapter(config, health)

        with patch(_ACOMP, new_callable=AsyncMock) as mock:
            mock.return_value = _make_response()
            await adapter.call(_explain())

        assert mock.call_args[1]["model"] == "gpt-4.1-mini"
        assert mock.call_args[1]["api_key"] == "sk-openai"


# ── _short_error_reason ───────────────────────────────────────


class TestShortErrorReason:
    def test_rate_limit(self):
        assert _short_error_reason(_rate_limit_error()) == "rate limit"

    def test_timeout(self):
        assert _short_error_reason(TimeoutError()) == "timeout"

    def test_connection(self):
        assert _short_error_reason(OSError("connection refused")) == "connection error"

    def test_long_message_truncated(self):
        assert len(_short_error_reason(ValueError("x" * 500))) == 80

    def test_generate_is_not_a_rate_limit(self):
        message = (
            "models/gemini-pro is not found for API version v1beta, "
            "or is not supported for generateContent"
        )
        reason = _short_error_reason(ValueError(message))

        assert reason != "rate limit"
        assert reason.startswith("models/gemini-pro is not found")

    @pytest.mark.parametrize("message", ["Rate limit reached for gpt-4o-mini", "HTTP 429"])
    def test_rate_limit_text(self, message):
        assert _short_error_reason(ValueError(message)) == "rate limit"

    def test_model_not_found(self):
        error = litellm.NotFoundError(
            message="model does not support generate", model="test", llm_provider="test",
        )
        assert _short_error_reason(error) == "model not found"

    @pytest.mark.asyncio
    async def test_missing_model_reported_as_such(self, adapter, health):
        error = litellm.NotFoundError(
            message="model does not support generate", model="test", llm_provider="test",
        )
        with patch(_ACOMP, AsyncMock(side_effect=error)) as mock, pytest.raises(
            ProviderCallError, match="Mistral AI: model not found",
        ):
            await adapter.call(_explain())

        assert mock.call_count == 1
        assert not health.is_healthy("mistral")
