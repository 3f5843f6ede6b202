"""Review agent: free-text critique of a draft translation.

The reviewer writes its suggestions in Chinese under three fixed headings
(terminology accuracy, fluency and grammar, style and consistency) and never
returns a revised translation. The notes feed the polish step and are
surfaced to the caller as ``review_notes``.
"""

from __future__ import annotations

from mediterm.llm.models import CompletionConfig
from mediterm.llm.service import CompletionService

REVIEW_INSTRUCTION = """You are an expert translation reviewer specializing in medical texts.
Your task is to critique the translation provided below.

Please evaluate the translation based on the following dimensions and provide your feedback in Chinese:
- **术语准确性** (Terminology Accuracy): Check for correctness of medical terms and consistency.
- **语言流畅性与语法** (Fluency and Grammar): Ensure the target text reads naturally and is grammatically correct.
- **表达风格与一致性** (Style and Consistency): Ensure the tone is appropriate for medical documentation.

Output Requirements:
- Return a list of concise, actionable suggestions in Chinese.
- Start your response with exactly: "以下为对当前译文的优化建议："
- Use the Chinese headers provided above.
- Each suggestion should point to a specific issue.
- Do NOT output a revised translation.
- Do NOT output generic praise or conversational filler."""


def build_review_prompt(
    source_text: str,
    draft: str,
    *,
    source_language: str,
    target_language: str,
) -> str:
    return (
        f"Source Text ({source_language}):\n{source_text}\n\n"
        f"Translation to Critique ({target_language}):\n{draft}\n\n"
        "Provide your specific suggestions for improvement:"
    )


async def run_review(
    completer: CompletionService,
    config: CompletionConfig,
    source_text: str,
    draft: str,
    *,
    source_language: str,
    target_language: str,
) -> str:
    """Return the reviewer's critique of ``draft``."""
    prompt = build_review_prompt(
        source_text, draft, source_language=source_language, target_language=target_language
    )
    notes = await completer.complete(config, prompt, REVIEW_INSTRUCTION)
    return notes.strip()


__all__ = ["REVIEW_INSTRUCTION", "build_review_prompt", "run_review"]
