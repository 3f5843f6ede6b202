"""
Token-bounded text chunker.

Splits long documents into ordered chunks whose estimated token count stays
within a budget, preferring natural boundaries in this order:

1. paragraphs (runs of ``\\n``),
2. sentences (``. ? ! 。 ？ ！``),
3. clauses (``, ; ， ；``),
4. a binary split at the character midpoint when no boundary exists.

Delimiters always stay attached to the piece before them, and nothing is
ever dropped, so ``"".join(split_into_chunks(text, n)) == text`` holds for
every input. Every chunk fits the budget except a run that cannot be split
any further (a single character whose estimate already exceeds it).
"""

from __future__ import annotations

import math
import re

from .tokens import estimate_tokens

_PARAGRAPH_BREAK = re.compile(r"(\n+)")
_SENTENCE_END = re.compile(r"([.?!。？！]+)")
_CLAUSE_END = re.compile(r"([;,，；]+)")

DEFAULT_TARGET_TOKENS = 1000


def calculate_chunk_size(total_tokens: int, target: int = DEFAULT_TARGET_TOKENS) -> int:
    """Return a per-chunk budget that spreads ``total_tokens`` evenly.

    Rather than filling chunks to the brim (1000, 1000, 200) the total is
    divided by the number of chunks the target implies (734, 734, 732).

    >>> calculate_chunk_size(800, 1000)
    800
    >>> calculate_chunk_size(2200, 1000)
    734
    """
    if target <= 0:
        raise ValueError("target must be a positive token count")
    if total_tokens <= target:
        return total_tokens
    num_chunks = math.ceil(total_tokens / target)
    return max(1, math.ceil(total_tokens / num_chunks))


def _attach_delimiters(text: str, pattern: re.Pattern[str]) -> list[str]:
    """Split ``text`` on ``pattern`` and glue each delimiter to the piece before it.

    A delimiter run at the very start has nothing to attach to and becomes
    its own piece.
    """
    pieces: list[str] = []
    for part in pattern.split(text):
        if not part:
            continue
        if pattern.fullmatch(part) and pieces:
            pieces[-1] += part
        else:
            pieces.append(part)
    return pieces


def _regroup(parts: list[str], budget: int) -> list[str]:
    """Greedily pack ``parts`` into chunks, recursing into oversize parts."""
    chunks: list[str] = []
    current = ""
    for part in parts:
        if estimate_tokens(current + part) <= budget:
            current += part
            continue
        if current:
            chunks.append(current)
            current = ""
        if estimate_tokens(part) > budget:
            chunks.extend(_split_oversize(part, budget))
        else:
            current = part
    if current:
        chunks.append(current)
    return chunks


def _split_oversize(text: str, budget: int) -> list[str]:
    """Split one over-budget piece on sentences, then clauses, then halves."""
    if estimate_tokens(text) <= budget:
        return [text]

    for pattern in (_SENTENCE_END, _CLAUSE_END):
        if pattern.search(text):
            parts = _attach_delimiters(text, pattern)
            if len(parts) > 1:
                return _regroup(parts, budget)

    mid = len(text) // 2
    if mid == 0:
        return [text]
    return _split_oversize(text[:mid], budget) + _split_oversize(text[mid:], budget)


def split_into_chunks(text: str, max_tokens_per_chunk: int) -> list[str]:
    """Split ``text`` into ordered, non-empty chunks within the token budget.

    Parameters
    ----------
    text:
        Document to split. Returned unchanged (as a single chunk) when it
        already fits.
    max_tokens_per_chunk:
        Budget per chunk, as measured by :func:`estimate_tokens`.

    Returns
    -------
    list[str]
        Chunks in document order; joining them with ``""`` gives ``text``.
    """
    if max_tokens_per_chunk <= 0:
        raise ValueError("max_tokens_per_chunk must be positive")
    if not text:
        return []
    if estimate_tokens(text) <= max_tokens_per_chunk:
        return [text]
    return _regroup(_attach_delimiters(text, _PARAGRAPH_BREAK), max_tokens_per_chunk)


__all__ = ["split_into_chunks", "calculate_chunk_size", "DEFAULT_TARGET_TOKENS"]
