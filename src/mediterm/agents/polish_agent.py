"""Polish agent: re-translate a draft using the reviewer's critique."""

from __future__ import annotations

from collections.abc import Sequence

from mediterm.core.contracts.glossary import GlossaryEntry
from mediterm.llm.models import CompletionConfig
from mediterm.llm.service import CompletionService

from .output import strip_markdown_fences

_POLISH_INSTRUCTION = """You are an expert medical translator and editor.
Your task is to refine a translation based on expert review feedback.

Requirements:
- Incorporate the reviewer's suggestions to improve accuracy, fluency, and terminology.
- Ensure the tone is professional and appropriate for medical contexts.
- Strictly maintain the original meaning of the source text.
- Return ONLY the revised translation. Do not include any notes or explanations."""


def build_polish_instruction(glossary: Sequence[GlossaryEntry] = ()) -> str:
    """Return the polish system instruction, with the glossary appended if any."""
    if not glossary:
        return _POLISH_INSTRUCTION
    lines = "\n".join(entry.as_prompt_line() for entry in glossary)
    return (
        f"{_POLISH_INSTRUCTION}\n"
        "- Keep every term of the mandatory glossary below exactly as listed.\n"
        f"\nMandatory Glossary:\n{lines}\n"
    )


def build_polish_prompt(
    source_text: str,
    draft: str,
    review_notes: str,
    *,
    source_language: str,
    target_language: str,
) -> str:
    return (
        f"Source Text ({source_language}):\n{source_text}\n\n"
        f"Current Translation ({target_language}):\n{draft}\n\n"
        f"Expert Reviewer Feedback:\n{review_notes}\n\n"
        "Please provide the final, revised translation based on this feedback:"
    )


async def run_polish(
    completer: CompletionService,
    config: CompletionConfig,
    source_text: str,
    draft: str,
    review_notes: str,
    *,
    source_language: str,
    target_language: str,
    glossary: Sequence[GlossaryEntry] = (),
) -> str:
    """Return the revised translation."""
    prompt = build_polish_prompt(
        source_text,
        draft,
        review_notes,
        source_language=source_language,
        target_language=target_language,
    )
    raw = await completer.complete(config, prompt, build_polish_instruction(glossary))
    return strip_markdown_fences(raw)


__all__ = ["build_polish_instruction", "build_polish_prompt", "run_polish"]
