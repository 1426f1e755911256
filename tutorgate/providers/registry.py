"""Provider registry and TOML configuration loader.

Loads provider definitions from providers.toml and gateway defaults from
defaults.toml, and builds the adapter for each provider.
"""

from __future__ import annotations

import tomllib
from pathlib import Path

from tutorgate.providers.base import ProviderAdapter
from tutorgate.providers.health import HealthRegistry
from tutorgate.providers.litellm_provider import (
    GeminiAdapter,
    HuggingFaceAdapter,
    MistralAdapter,
    OpenAIAdapter,
)
from tutorgate.schemas.providers import (
    GatewayConfig,
    ProviderConfig,
    ProviderName,
    RateLimitConfig,
)

# Default config directory relative to the tutorgate package
_CONFIG_DIR = Path(__file__).parent.parent / "config"


def load_providers(config_path: Path | None = None) -> dict[ProviderName, ProviderConfig]:
    """Load the provider registry from a TOML file.

    Args:
        config_path: Path to providers.toml. Defaults to tutorgate/config/providers.toml.

    Returns:
        Dictionary mapping provider names to ProviderConfig instances.

    Raises:
        FileNotFoundError: If the config file does not exist.
        ValueError: If the TOML structure is invalid or names an unknown provider.
    """
    path = config_path or _CONFIG_DIR / "providers.toml"
    if not path.exists():
        raise FileNotFoundError(f"Provider registry not found: {path}")

    with open(path, "rb") as f:
        raw = tomllib.load(f)

    providers_section = raw.get("providers")
    if not providers_section or not isinstance(providers_section, dict):
        raise ValueError(f"No [providers] section found in {path}")

    registry: dict[ProviderName, ProviderConfig] = {}
    for key, entry in providers_section.items():
        if not isinstance(entry, dict):
            continue

        try:
            name = ProviderName(key)
        except ValueError:
            known = ", ".join(p.value for p in ProviderName)
            raise ValueError(
                f"Unknown provider '{key}' in {path}. Known providers: {known}"
            ) from None

        # Extract the nested quota table if present
        limit_data = entry.pop("rate_limit", None)
        rate_limit = RateLimitConfig(**limit_data) if limit_data else None

        registry[name] = ProviderConfig(name=name, **entry, rate_limit=rate_limit)

    return registry


def load_gateway_config(config_path: Path | None = None) -> GatewayConfig:
    """Load gateway defaults from a TOML file.

    Args:
        config_path: Path to defaults.toml. Defaults to tutorgate/config/defaults.toml.

    Returns:
        GatewayConfig with values from the TOML file.

    Raises:
        FileNotFoundError: If the config file does not exist.
    """
    path = config_path or _CONFIG_DIR / "defaults.toml"
    if not path.exists():
        raise FileNotFoundError(f"Gateway config not found: {path}")

    with open(path, "rb") as f:
        raw = tomllib.load(f)

    return GatewayConfig(**raw.get("gateway", {}))


def create_adapter(
    config: ProviderConfig,
    health: HealthRegistry,
    gateway: GatewayConfig | None = None,
) -> ProviderAdapter:
    """Build the adapter variant for one provider."""
    gateway = gateway or GatewayConfig()
    retry = {"max_retries": gateway.max_retries, "base_backoff": gateway.base_backoff}

    match config.name:
        case ProviderName.HUGGINGFACE:
            return HuggingFaceAdapter(config, health, **retry)
        case ProviderName.GEMINI:
            return GeminiAdapter(config, health, **retry)
        case ProviderName.MISTRAL:
            return MistralAdapter(config, health, **retry)
        case ProviderName.OPENAI:
            return OpenAIAdapter(config, health, **retry)


def build_adapters(
    configs: dict[ProviderName, ProviderConfig],
    health: HealthRegistry,
    gateway: GatewayConfig | None = None,
) -> dict[ProviderName, ProviderAdapter]:
    """Build one adapter per configured provider, ordered by priority."""
    ordered = sorted(configs.values(), key=lambda c: c.priority)
    return {cfg.name: create_adapter(cfg, health, gateway) for cfg in ordered}
