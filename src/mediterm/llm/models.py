# -----------------------------------------------------------------------------
# Provider registry and completion credentials.
#
# The translation core never talks to a provider directly: it receives an
# opaque `CompletionConfig` from the surrounding application and hands it to
# whatever completion service was injected. The bundled HTTP adapter
# (`LLMClient`) resolves that config against the small registry below to get
# the endpoint, default model and sampling parameters for each provider:
#
#   - "gemini"             Google Gemini generateContent REST API
#   - "openai-compatible"  any OpenAI-style /chat/completions endpoint
#   - "glm"                Zhipu GLM (OpenAI-compatible, own defaults)
# -----------------------------------------------------------------------------
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class ModelConfig:
    """Resolved endpoint + model parameters for one provider call.

    Parameters
    ----------
    name:
        Provider-specific model identifier, e.g. ``"gemini-2.5-flash"``.
    provider:
        Logical provider name; drives authentication and protocol selection.
    base_url:
        Base URL of the API, without a trailing slash.
    max_tokens:
        Upper bound on generated tokens.
    temperature:
        Sampling temperature. Translation wants near-deterministic output.
    """

    name: str
    provider: str = "openai-compatible"
    base_url: str = "https://api.openai.com/v1"
    max_tokens: int = 8192
    temperature: float = 0.1


#: Per-provider defaults, used when the caller's config leaves a field empty.
PROVIDER_DEFAULTS: dict[str, ModelConfig] = {
    "gemini": ModelConfig(
        name="gemini-2.5-flash",
        provider="gemini",
        base_url="https://generativelanguage.googleapis.com/v1beta",
    ),
    "openai-compatible": ModelConfig(
        name="gpt-3.5-turbo",
        provider="openai-compatible",
        base_url="https://api.openai.com/v1",
    ),
    "glm": ModelConfig(
        name="glm-4-flash",
        provider="glm",
        base_url="https://open.bigmodel.cn/api/paas/v4",
    ),
}


@dataclass(frozen=True, slots=True)
class CompletionConfig:
    """Caller-supplied credentials for the completion service.

    The pipeline treats this object as opaque and only passes it through.
    ``repr`` masks the API key so configs can be logged safely.
    """

    provider: str = "gemini"
    api_key: str = ""
    base_url: str | None = None
    model: str | None = None
    temperature: float | None = None

    def __repr__(self) -> str:
        masked = f"{self.api_key[:4]}..." if self.api_key else "<missing>"
        return (
            f"CompletionConfig(provider={self.provider!r}, api_key={masked!r}, "
            f"base_url={self.base_url!r}, model={self.model!r})"
        )


def resolve_model(config: CompletionConfig) -> ModelConfig:
    """Merge ``config`` over the registry defaults for its provider.

    Raises
    ------
    ValueError
        If the provider is not in :data:`PROVIDER_DEFAULTS`.
    """
    provider = config.provider.lower().strip()
    defaults = PROVIDER_DEFAULTS.get(provider)
    if defaults is None:
        raise ValueError(f"Unsupported provider: {config.provider!r}")

    base_url = (config.base_url or defaults.base_url).rstrip("/")
    return ModelConfig(
        name=config.model or defaults.name,
        provider=provider,
        base_url=base_url,
        max_tokens=defaults.max_tokens,
        temperature=(
            config.temperature if config.temperature is not None else defaults.temperature
        ),
    )


def all_providers() -> Mapping[str, ModelConfig]:
    """Return a read-only snapshot of the provider registry."""
    return dict(PROVIDER_DEFAULTS)


__all__ = ["ModelConfig", "CompletionConfig", "PROVIDER_DEFAULTS", "resolve_model", "all_providers"]
