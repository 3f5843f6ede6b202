"""Retry and deadline policy around a :class:`CompletionService`.

Every completion call in the pipeline goes through :class:`ResilientCompleter`:

- Each attempt is bounded by ``step_timeout_seconds``; a missed deadline is a
  :class:`TransportError` and is not retried.
- Quota / rate-limit failures are retried up to ``max_retries`` times with
  exponential backoff (``base_delay * 2**n``, i.e. 1s, 2s, 4s by default).
  Once the budget is spent the call fails with :class:`QuotaExceeded`.
- Credential failures become :class:`AuthError`; anything else becomes
  :class:`TransportError`. Neither is retried.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any, Literal

from mediterm.core.errors import AuthError, QuotaExceeded, TransportError
from mediterm.core.settings import get_logger, load_settings

from .models import CompletionConfig
from .service import CompletionService

FailureKind = Literal["auth", "quota", "transport"]

_QUOTA_MARKERS = ("429", "quota", "resource_exhausted", "rate limit", "too many requests")
_AUTH_MARKERS = (
    "api key not valid",
    "invalid api key",
    "incorrect api key",
    "api_key_invalid",
    "unauthenticated",
)

logger = get_logger(__name__)


def _status_of(exc: BaseException) -> int | None:
    """Best-effort HTTP status lookup across common exception shapes."""
    for attr in ("status", "status_code", "code"):
        value: Any = getattr(exc, attr, None)
        if isinstance(value, int):
            return value
    response = getattr(exc, "response", None)
    value = getattr(response, "status_code", None)
    return value if isinstance(value, int) else None


def classify_failure(exc: BaseException) -> FailureKind:
    """Sort an arbitrary completion failure into auth / quota / transport.

    Some providers reject a bad key with a 400, so credential wording in the
    message counts as auth whatever the status.

    >>> classify_failure(RuntimeError("RESOURCE_EXHAUSTED: quota"))
    'quota'
    >>> classify_failure(RuntimeError("connection reset"))
    'transport'
    """
    if isinstance(exc, AuthError):
        return "auth"
    if isinstance(exc, QuotaExceeded):
        return "quota"

    status = _status_of(exc)
    if status == 429:
        return "quota"
    message = str(exc).lower()
    if any(marker in message for marker in _QUOTA_MARKERS):
        return "quota"
    if status in (401, 403):
        return "auth"
    if any(marker in message for marker in _AUTH_MARKERS):
        return "auth"
    return "transport"


class ResilientCompleter:
    """Wrap a completion service with the retry/deadline policy.

    Parameters default to the values in :func:`load_settings`. ``sleep`` is
    injectable so tests can observe the backoff schedule without waiting.
    """

    def __init__(
        self,
        service: CompletionService,
        *,
        max_retries: int | None = None,
        base_delay: float | None = None,
        timeout: float | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        cfg = load_settings()
        self.service = service
        self.max_retries = cfg.max_retries if max_retries is None else max_retries
        self.base_delay = cfg.retry_base_delay if base_delay is None else base_delay
        self.timeout = cfg.step_timeout_seconds if timeout is None else timeout
        self._sleep = sleep

    async def complete(
        self,
        config: CompletionConfig,
        prompt: str,
        system_instruction: str | None = None,
    ) -> str:
        """Return one completion, retrying quota failures with backoff."""
        attempts = self.max_retries + 1
        last: BaseException | None = None

        for attempt in range(attempts):
            if attempt:
                await self._sleep(self.base_delay * 2 ** (attempt - 1))
            try:
                return await asyncio.wait_for(
                    self.service.complete(config, prompt, system_instruction),
                    timeout=self.timeout,
                )
            except TimeoutError as exc:
                raise TransportError(
                    f"completion timed out after {self.timeout:g}s"
                ) from exc
            except Exception as exc:
                kind = classify_failure(exc)
                if kind == "quota":
                    last = exc
                    logger.warning(
                        "Quota limit hit (attempt %d/%d): %s", attempt + 1, attempts, exc
                    )
                    continue
                if kind == "auth":
                    if isinstance(exc, AuthError):
                        raise
                    raise AuthError(str(exc)) from exc
                if isinstance(exc, TransportError):
                    raise
                raise TransportError(str(exc), status=_status_of(exc)) from exc

        raise QuotaExceeded(attempts=attempts) from last


__all__ = ["ResilientCompleter", "classify_failure", "FailureKind"]
