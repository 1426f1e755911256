"""Provider adapters, health tracking, and the provider registry."""

from tutorgate.providers.base import ProviderAdapter
from tutorgate.providers.health import HealthRegistry, ProviderHealth, RateLimitState
from tutorgate.providers.litellm_provider import (
    GeminiAdapter,
    HuggingFaceAdapter,
    LiteLLMAdapter,
    MistralAdapter,
    OpenAIAdapter,
)
from tutorgate.providers.registry import (
    build_adapters,
    create_adapter,
    load_gateway_config,
    load_providers,
)

__all__ = [
    "GeminiAdapter",
    "HealthRegistry",
    "HuggingFaceAdapter",
    "LiteLLMAdapter",
    "MistralAdapter",
    "OpenAIAdapter",
    "ProviderAdapter",
    "ProviderHealth",
    "RateLimitState",
    "build_adapters",
    "create_adapter",
    "load_gateway_config",
    "load_providers",
]
