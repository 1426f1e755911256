"""Provider registry and gateway configuration schemas.

Loaded from providers.toml and defaults.toml. Each ProviderConfig entry
describes how to reach one upstream through LiteLLM; GatewayConfig holds
the orchestrator-wide timeouts, retry policy, and health TTLs.
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, Field


class ProviderName(StrEnum):
    """The closed set of upstream providers the gateway knows about."""

    HUGGINGFACE = "huggingface"
    GEMINI = "gemini"
    MISTRAL = "mistral"
    OPENAI = "openai"


class RateLimitConfig(BaseModel):
    """Client-side quota for a provider with a strict upstream limit."""

    max_per_window: int = Field(gt=0, description="Requests allowed per window")
    window_seconds: float = Field(default=60.0, gt=0, description="Window length in seconds")
    min_interval: float = Field(
        default=0.0, ge=0.0, description="Minimum seconds between consecutive requests"
    )


class ProviderConfig(BaseModel):
    """Configuration for a single upstream provider."""

    name: ProviderName = Field(description="Registry key of this provider")
    display_name: str = Field(description="Human-friendly name used in errors and logs")
    model: str = Field(description="LiteLLM model identifier (e.g. 'mistral/mistral-medium-latest')")
    api_key_env: str = Field(description="Environment variable name holding the API key")
    api_base: str = Field(default="", description="Custom API base URL (empty = provider default)")
    key_required: bool = Field(
        default=True, description="False for providers with an anonymous free tier"
    )
    priority: int = Field(
        default=99, ge=0, description="Candidate ordering in auto mode (lower first)"
    )
    request_timeout: float = Field(
        default=30.0, gt=0, description="Per-request transport timeout in seconds"
    )
    temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    max_tokens: int = Field(default=2000, gt=0)
    rate_limit: RateLimitConfig | None = Field(
        default=None, description="Client-side quota, for quota-limited providers only"
    )
    json_output: bool = Field(
        default=True, description="Whether the upstream can be asked for JSON-only output"
    )


class GatewayConfig(BaseModel):
    """Orchestrator-wide settings loaded from defaults.toml."""

    health_ttl: float = Field(
        default=300.0, gt=0, description="Seconds before a health record goes stale"
    )
    rate_limited_cooldown: float = Field(
        default=600.0, ge=0, description="Seconds to skip a provider after an upstream 429"
    )
    explain_timeout: float = Field(default=12.0, gt=0)
    answer_timeout: float = Field(default=12.0, gt=0)
    feedback_timeout: float = Field(default=15.0, gt=0)
    course_timeout: float = Field(default=30.0, gt=0)
    max_retries: int = Field(
        default=3, ge=1, le=5, description="Attempts per adapter call, including the first"
    )
    base_backoff: float = Field(default=1.0, ge=0.0, description="Backoff base in seconds")
    uppercase_heuristic: bool = Field(
        default=True,
        description="Flag undefined uppercase identifiers outside print() calls",
    )
