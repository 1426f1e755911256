"""Abstract base class for all provider adapters.

Defines the ProviderAdapter interface every upstream adapter implements.
The orchestrator interacts exclusively through this interface; it never
calls provider SDKs directly.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from tutorgate.keys import has_key
from tutorgate.providers.health import HealthRegistry
from tutorgate.schemas.completion import CompletionRequest, CompletionResult
from tutorgate.schemas.providers import ProviderConfig, ProviderName


class ProviderAdapter(ABC):
    """Uniform async contract over one upstream text-generation API.

    Initialized from a ProviderConfig loaded from the TOML registry and the
    shared HealthRegistry. Exposes identity, eligibility checks, and a
    single async call() method that every adapter implements.
    """

    def __init__(self, config: ProviderConfig, health: HealthRegistry) -> None:
        self._config = config
        self._health = health

    # ── Identity ──────────────────────────────────────────────

    @property
    def name(self) -> ProviderName:
        """Registry key, also used as the ``provider`` field of results."""
        return self._config.name

    @property
    def display_name(self) -> str:
        return self._config.display_name

    @property
    def priority(self) -> int:
        return self._config.priority

    @property
    def config(self) -> ProviderConfig:
        """The full ProviderConfig backing this adapter."""
        return self._config

    # ── Eligibility ───────────────────────────────────────────

    @property
    def configured(self) -> bool:
        """Whether the adapter can authenticate (or needs no key)."""
        return has_key(self._config.api_key_env) or not self._config.key_required

    @property
    def healthy(self) -> bool:
        return self._health.is_healthy(self.name)

    @property
    def quota_limited(self) -> bool:
        return self._health.is_quota_limited(self.name)

    def unavailable_reason(self) -> str | None:
        """Why the adapter cannot be called right now, or None if it can.

        Cheap and synchronous: checks the credential, the health record, the
        upstream rate-limit cooldown, and the client-side quota. Never
        touches the network.
        """
        if not self.configured:
            return f"API key not configured ({self._config.api_key_env})"
        if not self.healthy:
            return "provider is currently unavailable"
        if self._health.is_rate_limited(self.name):
            return "provider is rate limited upstream, cooling down"
        if not self._health.can_proceed(self.name):
            return "rate limit: too many requests, please wait a moment"
        return None

    @property
    def eligible(self) -> bool:
        return self.unavailable_reason() is None

    # ── Core interface ────────────────────────────────────────

    @abstractmethod
    async def call(self, request: CompletionRequest) -> CompletionResult:
        """Send one request upstream and return a CompletionResult.

        Implementations must raise ProviderUnavailableError when a pre-flight
        check fails (without any network call), mark health after the call,
        and raise ProviderCallError prefixed with the provider name when the
        upstream fails after retries.
        """
