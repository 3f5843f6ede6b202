# tests/fakes.py
"""
Test doubles for the completion service.

No test talks to a real provider. Pipeline tests inject
:class:`FakeCompletionService`, which answers each call by asking a
``responder`` callable and records every call it receives.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field

from mediterm.llm.models import CompletionConfig


@dataclass
class Call:
    prompt: str
    system_instruction: str | None


@dataclass
class FakeCompletionService:
    """Completion service whose answers come from ``responder(prompt, system)``.

    A responder may return text or raise; exceptions propagate to the caller
    exactly as a real adapter's would.
    """

    responder: Callable[[str, str | None], str]
    calls: list[Call] = field(default_factory=list)

    async def complete(
        self,
        config: CompletionConfig,
        prompt: str,
        system_instruction: str | None = None,
    ) -> str:
        self.calls.append(Call(prompt, system_instruction))
        return self.responder(prompt, system_instruction)

    def steps(self) -> list[str]:
        return [step_of(call.system_instruction) for call in self.calls]


def step_of(system_instruction: str | None) -> str:
    """Name the pipeline step a system instruction belongs to."""
    text = system_instruction or ""
    if text.startswith("You are an expert translator."):
        return "draft"
    if "translation reviewer" in text:
        return "review"
    if "translator and editor" in text:
        return "polish"
    if "alignment engine" in text:
        return "align"
    return "unknown"


class HTTPStatusError(RuntimeError):
    """Provider-style failure carrying an HTTP status."""

    def __init__(self, message: str, status: int) -> None:
        super().__init__(message)
        self.status = status
