from __future__ import annotations

from .client import LLMClient, ProviderError
from .models import (
    PROVIDER_DEFAULTS,
    CompletionConfig,
    ModelConfig,
    all_providers,
    resolve_model,
)
from .resilient import ResilientCompleter, classify_failure
from .service import CompletionService, LLMCompletionService

__all__ = [
    "ModelConfig",
    "CompletionConfig",
    "PROVIDER_DEFAULTS",
    "resolve_model",
    "all_providers",
    "LLMClient",
    "ProviderError",
    "CompletionService",
    "LLMCompletionService",
    "ResilientCompleter",
    "classify_failure",
]
