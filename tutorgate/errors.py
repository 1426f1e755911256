"""Exception hierarchy for the completion gateway.

Adapters raise these; the orchestrator catches them and turns total
failure into a fallback result, so none of them reach a route handler
except UnknownProviderError, which signals a bad request, and
CourseGenerationError, since course outlines have no fallback.
"""

from __future__ import annotations


class GatewayError(Exception):
    """Base exception for all gateway errors."""


class ProviderUnavailableError(GatewayError):
    """A provider failed its pre-flight checks (no key, unhealthy, over quota).

    Raised before any network call is made.
    """

    def __init__(self, provider: str, reason: str) -> None:
        self.provider = provider
        self.reason = reason
        super().__init__(f"{provider}: {reason}")


class ProviderCallError(GatewayError):
    """The upstream call failed after all retries."""

    def __init__(self, provider: str, message: str) -> None:
        self.provider = provider
        self.message = message
        super().__init__(f"{provider}: {message}")


class UnknownProviderError(GatewayError, ValueError):
    """A caller named a provider that is not in the registry."""

    def __init__(self, name: str, available: list[str]) -> None:
        self.name = name
        super().__init__(
            f"Unknown provider: {name}. Available: {', '.join(available)}"
        )


class CourseGenerationError(GatewayError):
    """No provider produced a usable course outline."""

    def __init__(self, errors: list[str]) -> None:
        self.errors = errors
        detail = "; ".join(errors) if errors else "no eligible providers"
        super().__init__(f"All AI providers failed for course generation ({detail})")
