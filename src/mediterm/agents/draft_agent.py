"""
Draft agent: first-pass translation with the mandatory glossary injected.

The draft is the only step in fast mode. Its system instruction names the
language pair, asks for the bare translation with no commentary, and lists
every glossary entry as ``- "source" -> "target"`` that the model must use.
Markdown fences the model wraps around its answer are stripped.
"""

from __future__ import annotations

from collections.abc import Sequence

from mediterm.core.contracts.glossary import GlossaryEntry
from mediterm.llm.models import CompletionConfig
from mediterm.llm.service import CompletionService

from .output import strip_markdown_fences


def build_draft_instruction(
    source_language: str,
    target_language: str,
    glossary: Sequence[GlossaryEntry] = (),
) -> str:
    """Return the system instruction for the draft step."""
    terminology = "- Terminology: Use correct, professional terminology."
    glossary_block = ""
    if glossary:
        terminology += " Strictly adhere to the provided mandatory glossary."
        lines = "\n".join(entry.as_prompt_line() for entry in glossary)
        glossary_block = (
            "\nMandatory Glossary (You MUST use these translations for the "
            f"specific terms below):\n{lines}\n"
        )

    return (
        "You are an expert translator.\n"
        f"Translate the provided text from {source_language} to {target_language}.\n"
        "\n"
        "Requirements:\n"
        "- Accuracy: Ensure the translation is faithful to the source text.\n"
        f"{terminology}\n"
        "- Formatting: Return ONLY the translated text. Do NOT include explanations, "
        "summaries, notes, or any extra text before or after the translation.\n"
        f"{glossary_block}"
    )


async def run_draft(
    completer: CompletionService,
    config: CompletionConfig,
    text: str,
    *,
    source_language: str,
    target_language: str,
    glossary: Sequence[GlossaryEntry] = (),
) -> str:
    """Translate ``text`` once and return the cleaned draft."""
    instruction = build_draft_instruction(source_language, target_language, glossary)
    raw = await completer.complete(config, text, instruction)
    return strip_markdown_fences(raw)


__all__ = ["build_draft_instruction", "run_draft"]
