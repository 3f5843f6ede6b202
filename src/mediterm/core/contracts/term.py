"""Term: one bilingual dictionary entry.

A term carries a primary label in each language, optional aliases that count
as exact ("strong") spellings of the label, and optional "core concept"
strings per language that are looser forms only used for "weak" matches.

Sides
-----
``"a"`` is language A (Chinese in the medical dictionary) and ``"b"`` is
language B (English). Segmentation, glossary construction and alignment all
take a side to decide which fields they read.
"""

from __future__ import annotations

import re
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

Side = Literal["a", "b"]

_WHITESPACE = re.compile(r"\s+")


def normalize_key(value: str) -> str:
    """Lower-case, collapse internal whitespace, and trim ``value``."""
    return _WHITESPACE.sub(" ", value.lower()).strip()


def other_side(side: Side) -> Side:
    """Return the opposite side."""
    return "b" if side == "a" else "a"


class Term(BaseModel):
    """An immutable dictionary entry."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1)
    label_a: str = ""
    label_b: str = ""
    aliases: tuple[str, ...] = ()
    core_a: str | None = None
    core_b: str | None = None
    category: str = ""
    note: str = ""

    @field_validator("aliases", mode="before")
    @classmethod
    def _clean_aliases(cls, value: object) -> tuple[str, ...]:
        """Accept any iterable of strings and drop blanks."""
        if value is None:
            return ()
        if isinstance(value, str):
            value = [value]
        if not isinstance(value, list | tuple | set | frozenset):
            raise ValueError("aliases must be a list of strings")
        return tuple(str(v).strip() for v in value if str(v).strip())

    @model_validator(mode="after")
    def _require_a_label(self) -> Term:
        if not self.label_a.strip() and not self.label_b.strip():
            raise ValueError(f"term {self.id!r} needs at least one primary label")
        return self

    def label(self, side: Side) -> str:
        """Return the primary label for ``side``."""
        return self.label_a if side == "a" else self.label_b

    def core(self, side: Side) -> str | None:
        """Return the core-concept string for ``side``, if any."""
        return self.core_a if side == "a" else self.core_b

    def lookup_key(self, side: Side) -> str:
        """Normalized primary-label key for ``side``."""
        return normalize_key(self.label(side))


__all__ = ["Term", "Side", "normalize_key", "other_side"]
