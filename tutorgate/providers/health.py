"""Provider health and rate-limit tracking for automatic fallback.

Tracks which providers recently succeeded or failed. A failure marks the
provider unhealthy until the record goes stale (TTL), after which it is
assumed healthy again without any explicit reset. The quota-limited
provider additionally gets a client-side request window so concurrent
races cannot burst past its upstream quota.

Design: plain in-memory dicts owned by one HealthRegistry instance, which
the orchestrator receives through its constructor. Everything runs on a
single asyncio loop, so each method is atomic between awaits and no lock
is needed.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass, replace

from tutorgate.schemas.providers import RateLimitConfig

logger = logging.getLogger(__name__)


@dataclass
class ProviderHealth:
    """Last recorded outcome for one provider."""

    provider: str
    is_healthy: bool
    last_checked_at: float


@dataclass
class RateLimitState:
    """Rolling request window for a quota-limited provider."""

    max_per_window: int
    window_seconds: float
    min_interval: float
    last_request_at: float | None = None
    request_count: int = 0
    window_reset_at: float = 0.0


class HealthRegistry:
    """Per-process health cache and rate-limit counters.

    Args:
        ttl: Seconds after which a health record is ignored.
        rate_limits: Quota per provider name, for quota-limited providers.
        rate_limited_cooldown: Seconds to skip a provider after the upstream
            itself answered with a rate-limit error.
        clock: Monotonic time source; injectable for tests.
    """

    def __init__(
        self,
        ttl: float = 300.0,
        rate_limits: Mapping[str, RateLimitConfig] | None = None,
        rate_limited_cooldown: float = 600.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._ttl = ttl
        self._cooldown = rate_limited_cooldown
        self._clock = clock
        self._health: dict[str, ProviderHealth] = {}
        self._rate_limited: dict[str, float] = {}
        self._limits: dict[str, RateLimitState] = {}
        for name, cfg in (rate_limits or {}).items():
            self.configure_rate_limit(name, cfg)

    # ── Health ────────────────────────────────────────────────

    def is_healthy(self, name: str) -> bool:
        """True when there is no fresh record saying the provider failed."""
        record = self._health.get(name)
        if record is None:
            return True
        if self._clock() - record.last_checked_at >= self._ttl:
            return True
        return record.is_healthy

    def mark_health(self, name: str, is_healthy: bool) -> None:
        """Record the outcome of a call, stamped with the current time."""
        self._health[name] = ProviderHealth(
            provider=name, is_healthy=is_healthy, last_checked_at=self._clock(),
        )

    def reset(self, name: str) -> None:
        """Forget everything recorded about one provider's health."""
        self._health.pop(name, None)
        self._rate_limited.pop(name, None)
        logger.info("Health status reset for %s", name)

    def reset_all(self) -> None:
        """Forget every health record, giving all providers a fresh chance."""
        self._health.clear()
        self._rate_limited.clear()
        logger.info("All provider health statuses reset")

    def snapshot(self) -> dict[str, ProviderHealth]:
        """Copy of the current health records."""
        return {name: replace(record) for name, record in self._health.items()}

    # ── Upstream rate-limit responses ─────────────────────────

    def mark_rate_limited(self, name: str) -> None:
        """The upstream answered 429; skip it for the cooldown period."""
        self._rate_limited[name] = self._clock()

    def is_rate_limited(self, name: str) -> bool:
        marked_at = self._rate_limited.get(name)
        if marked_at is None:
            return False
        if self._clock() - marked_at >= self._cooldown:
            del self._rate_limited[name]
            return False
        return True

    # ── Client-side quota ─────────────────────────────────────

    def configure_rate_limit(self, name: str, config: RateLimitConfig) -> None:
        """Attach a request window to a provider, starting empty."""
        self._limits[name] = RateLimitState(
            max_per_window=config.max_per_window,
            window_seconds=config.window_seconds,
            min_interval=config.min_interval,
            window_reset_at=self._clock() + config.window_seconds,
        )

    def is_quota_limited(self, name: str) -> bool:
        return name in self._limits

    def can_proceed(self, name: str) -> bool:
        """Check the request window without consuming from it.

        Always True for providers without a configured quota.
        """
        state = self._limits.get(name)
        if state is None:
            return True

        now = self._clock()
        if now > state.window_reset_at:
            state.request_count = 0
            state.window_reset_at = now + state.window_seconds

        if state.request_count >= state.max_per_window:
            return False
        if (
            state.last_request_at is not None
            and now - state.last_request_at < state.min_interval
        ):
            return False
        return True

    def record_attempt(self, name: str) -> None:
        """Count a request against the window. Call before dispatching it."""
        state = self._limits.get(name)
        if state is None:
            return
        state.last_request_at = self._clock()
        state.request_count += 1

    def rate_limit_state(self, name: str) -> RateLimitState | None:
        state = self._limits.get(name)
        return replace(state) if state is not None else None
