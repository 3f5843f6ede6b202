"""Source-direction detection for bilingual (Chinese/English) input."""

from __future__ import annotations

import re

from mediterm.core.contracts.term import Side

_IDEOGRAPH = re.compile(r"[\u4e00-\u9fa5]")

LANGUAGE_NAMES: dict[Side, str] = {"a": "Chinese", "b": "English"}


def detect_source_side(text: str) -> Side:
    """Return ``"a"`` if ``text`` contains a CJK ideograph, else ``"b"``."""
    return "a" if _IDEOGRAPH.search(text) else "b"


__all__ = ["detect_source_side", "LANGUAGE_NAMES"]
