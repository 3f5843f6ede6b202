"""TranslationResult: what the translation pipeline hands back.

``review_notes`` and ``alignments`` are only populated in professional mode;
fast mode leaves both as ``None``.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

from .alignment import TermAlignment
from .glossary import GlossaryEntry

TranslationMode = Literal["fast", "professional"]


class TranslationResult(BaseModel):
    """Final output of one translation request."""

    final_text: str
    review_notes: str | None = None
    alignments: list[TermAlignment] | None = None

    mode: TranslationMode = "fast"
    chunk_count: int = Field(default=1, ge=1)
    glossary: list[GlossaryEntry] = Field(default_factory=list)


__all__ = ["TranslationResult", "TranslationMode"]
