"""Immutable term dictionary passed into the translation pipeline.

The dictionary is built once by the surrounding application (from a bundled
system list, a user's exported terms, or both) and handed to every call.
Nothing in the pipeline mutates it or lazily fills it in.

Import formats
--------------
:meth:`TermDictionary.from_records` accepts two record shapes:

- native: ``{"id", "label_a", "label_b", "aliases", "core_a", "core_b", ...}``
- legacy export: ``{"chinese_term", "english_term", "related_terms" | "aliases",
  "coreCN", "coreEN", "category", "note"}``

Rows missing either primary label are skipped, and rows whose language-A
label normalizes to one already seen are dropped (first row wins).
"""

from __future__ import annotations

import json
from collections.abc import Iterable, Iterator, Mapping, Sequence
from pathlib import Path
from typing import TYPE_CHECKING, Any

from .contracts.term import Side, Term, normalize_key

if TYPE_CHECKING:
    from mediterm.text.segmenter import TermMatcher


def _str_list(raw: Any) -> list[str]:
    """Parse a sequence-like value into a cleaned list of strings."""
    if isinstance(raw, str):
        return [raw.strip()] if raw.strip() else []
    if not isinstance(raw, Sequence):
        return []
    return [str(v).strip() for v in raw if str(v).strip()]


def _first(record: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        value = record.get(key)
        if value not in (None, "", []):
            return value
    return None


def _term_from_record(record: Mapping[str, Any], fallback_id: str) -> Term | None:
    label_a = str(_first(record, "label_a", "chinese_term") or "").strip()
    label_b = str(_first(record, "label_b", "english_term") or "").strip()
    if not label_a or not label_b:
        return None

    core_a = _first(record, "core_a", "coreCN")
    core_b = _first(record, "core_b", "coreEN")
    return Term(
        id=str(record.get("id") or fallback_id),
        label_a=label_a,
        label_b=label_b,
        aliases=tuple(_str_list(_first(record, "aliases", "related_terms") or [])),
        core_a=str(core_a).strip() if core_a else None,
        core_b=str(core_b).strip() if core_b else None,
        category=str(record.get("category") or ""),
        note=str(record.get("note") or ""),
    )


class TermDictionary(Sequence[Term]):
    """Read-only, ordered collection of :class:`Term` objects.

    Order matters: when two terms share a lookup key the earlier one wins,
    so user terms should come before system terms (see :meth:`merge`).
    """

    def __init__(self, terms: Iterable[Term] = ()) -> None:
        self._terms: tuple[Term, ...] = tuple(terms)
        self._by_id: dict[str, Term] = {}
        self._matchers: dict[Side, TermMatcher] = {}
        for term in self._terms:
            self._by_id.setdefault(term.id, term)

    # ------------------------------ constructors -----------------------------

    @classmethod
    def from_records(
        cls,
        records: Iterable[Mapping[str, Any]],
        *,
        id_prefix: str = "user",
    ) -> TermDictionary:
        """Build a dictionary from plain mappings (native or legacy shape)."""
        seen: set[str] = set()
        terms: list[Term] = []
        for idx, record in enumerate(records):
            if not isinstance(record, Mapping):
                continue
            term = _term_from_record(record, fallback_id=f"{id_prefix}_{idx}")
            if term is None:
                continue
            key = term.lookup_key("a")
            if key in seen:
                continue
            seen.add(key)
            terms.append(term)
        return cls(terms)

    @classmethod
    def merge(cls, *dictionaries: Iterable[Term]) -> TermDictionary:
        """Concatenate dictionaries; earlier ones take priority on collisions."""
        merged: list[Term] = []
        for dictionary in dictionaries:
            merged.extend(dictionary)
        return cls(merged)

    # ------------------------------ Sequence API -----------------------------

    def __getitem__(self, index: Any) -> Any:
        return self._terms[index]

    def __len__(self) -> int:
        return len(self._terms)

    def __iter__(self) -> Iterator[Term]:
        return iter(self._terms)

    def __repr__(self) -> str:  # pragma: no cover - trivial
        return f"TermDictionary({len(self._terms)} terms)"

    # ------------------------------ lookups ----------------------------------

    def get(self, term_id: str) -> Term | None:
        """Return the term with ``term_id``, or ``None``."""
        return self._by_id.get(term_id)

    def find_label(self, label: str, side: Side) -> Term | None:
        """Return the first term whose primary label on ``side`` equals ``label``."""
        key = normalize_key(label)
        for term in self._terms:
            if term.lookup_key(side) == key:
                return term
        return None

    def subset(self, term_ids: Iterable[str]) -> list[Term]:
        """Return the terms for ``term_ids`` in the order given, skipping unknown ids."""
        out: list[Term] = []
        seen: set[str] = set()
        for term_id in term_ids:
            term = self._by_id.get(term_id)
            if term is not None and term_id not in seen:
                seen.add(term_id)
                out.append(term)
        return out

    # ------------------------------ matchers ---------------------------------

    def matcher(self, side: Side) -> TermMatcher:
        """Return a compiled :class:`TermMatcher` for ``side``, built once."""
        from mediterm.text.segmenter import TermMatcher

        if side not in self._matchers:
            self._matchers[side] = TermMatcher(self._terms, side)
        return self._matchers[side]


def load_dictionary(path: Path | str) -> TermDictionary:
    """Load a JSON file holding a list of term records (or ``{"terms": [...]}``)."""
    with Path(path).open("r", encoding="utf-8") as fh:
        payload: Any = json.load(fh)
    if isinstance(payload, Mapping):
        payload = payload.get("terms", [])
    if not isinstance(payload, list):
        raise ValueError(f"{path}: expected a JSON list of term records")
    return TermDictionary.from_records(payload)


__all__ = ["TermDictionary", "load_dictionary"]
