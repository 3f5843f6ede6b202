"""Completion-service contract and the bundled async adapter.

The translation core depends only on :class:`CompletionService`: anything
with an awaitable ``complete(config, prompt, system_instruction=None)``
returning text. Failures may be any exception; the resilient wrapper
classifies them.

:class:`LLMCompletionService` adapts the blocking :class:`LLMClient` by
running each call in a worker thread, so the event loop stays free while a
request is in flight.
"""

from __future__ import annotations

import asyncio
from typing import Protocol, runtime_checkable

from .client import LLMClient
from .models import CompletionConfig


@runtime_checkable
class CompletionService(Protocol):
    """Abstract text-completion capability."""

    async def complete(
        self,
        config: CompletionConfig,
        prompt: str,
        system_instruction: str | None = None,
    ) -> str: ...


class LLMCompletionService:
    """:class:`CompletionService` backed by the HTTP :class:`LLMClient`."""

    def __init__(self, client: LLMClient | None = None) -> None:
        self._client = client if client is not None else LLMClient()

    async def complete(
        self,
        config: CompletionConfig,
        prompt: str,
        system_instruction: str | None = None,
    ) -> str:
        return await asyncio.to_thread(self._client.generate, config, prompt, system_instruction)


__all__ = ["CompletionService", "LLMCompletionService"]
