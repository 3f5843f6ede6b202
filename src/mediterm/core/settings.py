"""Application configuration for MediTerm (Pydantic Settings v2).

Values come from real environment variables first, then from the first
matching ``.env`` file in the working directory (``.env``, ``.env.local``,
``.env.<environment>``). One cached instance is shared by the whole process:

- the pipeline reads its knobs from it: chunk budget, quota retry policy
  and the per-step deadline;
- the CLI and HTTP API build their default completion credentials from it
  (:meth:`Settings.completion_config`); library callers pass their own.

Tests that mutate ``os.environ`` call ``load_settings.cache_clear()``.
"""

from __future__ import annotations

import logging
import os
from functools import lru_cache
from typing import TYPE_CHECKING, Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

if TYPE_CHECKING:
    from mediterm.llm.models import CompletionConfig

EnvName = Literal["dev", "test", "prod"]
LogLevelName = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
ProviderName = Literal["gemini", "openai-compatible", "glm"]

_LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


class Settings(BaseSettings):
    """Typed MediTerm configuration.

    Attributes
    ----------
    environment : EnvName
        ``MEDITERM_ENV``; the test suite runs with ``test``.
    log_level : LogLevelName
        ``LOG_LEVEL``; applied by :func:`get_logger`.
    max_tokens_per_chunk : int
        Token budget above which a document is translated chunk by chunk.
    max_retries : int
        Extra attempts for a completion call that hit a quota limit.
    retry_base_delay : float
        First backoff delay in seconds; doubled on every further retry.
    step_timeout_seconds : float
        Deadline for a single completion attempt.
    max_finished_jobs : int
        Finished API jobs kept in memory before the oldest are dropped.
    provider, api_key, model, base_url
        Default completion-service credentials for the CLI and API.
    """

    environment: EnvName = Field(default="dev", alias="MEDITERM_ENV")
    log_level: LogLevelName = Field(default="INFO", alias="LOG_LEVEL")

    max_tokens_per_chunk: int = Field(default=1000, ge=1, alias="MEDITERM_MAX_TOKENS_PER_CHUNK")
    max_retries: int = Field(default=3, ge=0, alias="MEDITERM_MAX_RETRIES")
    retry_base_delay: float = Field(default=1.0, ge=0.0, alias="MEDITERM_RETRY_BASE_DELAY")
    step_timeout_seconds: float = Field(default=120.0, gt=0.0, alias="MEDITERM_STEP_TIMEOUT")
    max_finished_jobs: int = Field(default=500, ge=0, alias="MEDITERM_MAX_FINISHED_JOBS")

    provider: ProviderName = Field(default="gemini", alias="MEDITERM_PROVIDER")
    api_key: str | None = Field(default=None, alias="MEDITERM_API_KEY")
    model: str | None = Field(default=None, alias="MEDITERM_MODEL")
    base_url: str | None = Field(default=None, alias="MEDITERM_BASE_URL")

    model_config = SettingsConfigDict(
        env_file=(".env", ".env.local", ".env.dev", ".env.test", ".env.prod"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    def log_level_numeric(self) -> int:
        """Return the :mod:`logging` constant for ``log_level``."""
        return getattr(logging, self.log_level, logging.INFO)

    def backoff_schedule(self) -> list[float]:
        """Delays slept before each quota retry, e.g. ``[1.0, 2.0, 4.0]``."""
        return [self.retry_base_delay * 2**n for n in range(self.max_retries)]

    def completion_config(self) -> CompletionConfig:
        """Build the default completion credentials from these settings."""
        from mediterm.llm.models import CompletionConfig

        return CompletionConfig(
            provider=self.provider,
            api_key=self.api_key or "",
            base_url=self.base_url,
            model=self.model,
        )


@lru_cache(maxsize=1)
def load_settings() -> Settings:
    """Build the process-wide :class:`Settings` once and reuse it."""
    os.environ.setdefault("MEDITERM_ENV", "dev")
    return Settings()


settings: Settings = load_settings()


def get_logger(name: str = "mediterm") -> logging.Logger:
    """Return ``name``'s logger with one stream handler at the configured level."""
    logger = logging.getLogger(name)
    if not any(isinstance(h, logging.StreamHandler) for h in logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(_LOG_FORMAT))
        logger.addHandler(handler)
    logger.setLevel(load_settings().log_level_numeric())
    logger.propagate = False
    return logger


__all__ = ["Settings", "ProviderName", "load_settings", "settings", "get_logger"]
