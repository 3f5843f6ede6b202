"""TermAlignment: where one term's concept sits in source and translation.

Spans are half-open ``(start, end)`` character offsets. Alignments are made
per chunk by the align step and shifted into document coordinates when the
chunks are joined (see :meth:`TermAlignment.shifted`).
"""

from __future__ import annotations

from pydantic import BaseModel, Field

Span = tuple[int, int]


class TermAlignment(BaseModel):
    """Spans of one term in the source text and in the translated text."""

    term_id: str = Field(min_length=1)
    source_spans: list[Span] = Field(default_factory=list)
    target_spans: list[Span] = Field(default_factory=list)

    def shifted(self, source_offset: int, target_offset: int) -> TermAlignment:
        """Return a copy with every span moved by the given offsets."""
        return TermAlignment(
            term_id=self.term_id,
            source_spans=[(s + source_offset, e + source_offset) for s, e in self.source_spans],
            target_spans=[(s + target_offset, e + target_offset) for s, e in self.target_spans],
        )


def merge_alignments(
    merged: dict[str, TermAlignment],
    incoming: list[TermAlignment],
) -> None:
    """Fold ``incoming`` into ``merged`` keyed by term id, appending spans.

    ``merged`` keeps first-seen order (dict insertion order).
    """
    for alignment in incoming:
        current = merged.get(alignment.term_id)
        if current is None:
            merged[alignment.term_id] = alignment.model_copy(deep=True)
            continue
        current.source_spans.extend(alignment.source_spans)
        current.target_spans.extend(alignment.target_spans)


__all__ = ["TermAlignment", "Span", "merge_alignments"]
