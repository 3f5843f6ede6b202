"""TextSegment: one annotated slice of a scanned text."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from .term import Term

MatchKind = Literal["none", "strong", "weak"]


class TextSegment(BaseModel):
    """A contiguous slice ``text[start:end]`` with its match annotation.

    ``term`` is a read-only reference into the caller's dictionary. For
    matched segments ``occurrence`` counts how many segments of the same term
    were emitted before this one in the same pass (kind is ignored); plain
    segments have ``kind == "none"`` and no occurrence.
    """

    model_config = ConfigDict(frozen=True)

    text: str
    start: int = Field(ge=0)
    end: int = Field(ge=0)
    term: Term | None = None
    kind: MatchKind = "none"
    occurrence: int | None = None

    @property
    def is_match(self) -> bool:
        """Return True if this segment is a strong or weak term match."""
        return self.term is not None


__all__ = ["TextSegment", "MatchKind"]
