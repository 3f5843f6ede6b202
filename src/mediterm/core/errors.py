"""Error taxonomy for the translation pipeline.

Callers only ever see four kinds of failure from :func:`translate`:

- :class:`AuthError`: missing or rejected credential. Never retried.
- :class:`QuotaExceeded`: rate/budget exhaustion that survived the local
  retry budget.
- :class:`TransportError`: any other network/HTTP/provider failure. Never
  retried.
- :class:`StaleRequestError`: the request was superseded by a newer one and
  its outcome was discarded.

:class:`AlignmentParseError` exists for the align step only and is always
recovered locally (the request completes with an empty alignment list).

Each class carries a ``user_hint`` that front-ends (CLI, HTTP) render as the
user-facing guidance for that kind.
"""

from __future__ import annotations

from typing import ClassVar


class MediTermError(Exception):
    """Base class for all pipeline errors."""

    user_hint: ClassVar[str] = "Something went wrong. Please review the details and try again."


class AuthError(MediTermError):
    """Missing or invalid completion-service credential."""

    user_hint = "Check your API key in the settings."


class QuotaExceeded(MediTermError):
    """Rate limit or quota still exhausted after all retries."""

    user_hint = "The provider quota is exhausted. Try again later."

    def __init__(self, message: str = "QUOTA_EXCEEDED", *, attempts: int = 0) -> None:
        super().__init__(message)
        self.attempts = attempts


class TransportError(MediTermError):
    """Non-recoverable HTTP, network, or provider failure."""

    user_hint = (
        "The translation service could not be reached. Check the network, "
        "the base URL, and the model name, then try again."
    )

    def __init__(self, message: str, *, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class AlignmentParseError(MediTermError):
    """The align step returned output that is not a usable alignment list."""


class StaleRequestError(MediTermError):
    """A newer request superseded this one; its result was discarded."""

    user_hint = "This translation was replaced by a newer request."

    def __init__(self, sequence: int, latest: int) -> None:
        super().__init__(f"request #{sequence} superseded by #{latest}")
        self.sequence = sequence
        self.latest = latest


__all__ = [
    "MediTermError",
    "AuthError",
    "QuotaExceeded",
    "TransportError",
    "AlignmentParseError",
    "StaleRequestError",
]
