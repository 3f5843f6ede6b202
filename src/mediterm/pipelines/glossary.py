"""Mandatory glossary built from the strong term matches in a source text."""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from mediterm.core.contracts.glossary import GlossaryEntry
from mediterm.core.contracts.term import Side, Term, other_side
from mediterm.core.dictionary import TermDictionary
from mediterm.text.segmenter import segment


def build_glossary(
    source_text: str,
    dictionary: Sequence[Term],
    source_side: Side,
) -> list[GlossaryEntry]:
    """Return one entry per strong match, first occurrence wins.

    The entry's ``source`` is the matched text exactly as written, its
    ``target`` the term's primary label on the other side. Terms without a
    label on the target side contribute nothing.
    """
    target_side = other_side(source_side)
    seen: set[tuple[str, str]] = set()
    entries: list[GlossaryEntry] = []
    for seg in segment(source_text, dictionary, source_side):
        if seg.kind != "strong" or seg.term is None:
            continue
        target = seg.term.label(target_side).strip()
        key = (seg.text, seg.term.id)
        if not target or key in seen:
            continue
        seen.add(key)
        entries.append(GlossaryEntry(source=seg.text, target=target, term_id=seg.term.id))
    return entries


def filter_glossary(glossary: Iterable[GlossaryEntry], chunk: str) -> list[GlossaryEntry]:
    """Keep entries whose source phrase occurs in ``chunk`` (case-insensitive)."""
    lowered = chunk.lower()
    return [entry for entry in glossary if entry.source.lower() in lowered]


def relevant_terms(glossary: Iterable[GlossaryEntry], dictionary: TermDictionary) -> list[Term]:
    """Return the distinct dictionary terms referenced by ``glossary``."""
    return dictionary.subset(entry.term_id for entry in glossary)


__all__ = ["build_glossary", "filter_glossary", "relevant_terms"]
