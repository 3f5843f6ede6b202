"""
Token estimation heuristic.

The estimate is deliberately tokenizer-free so it can run on every keystroke
and decide chunk boundaries without any model-specific dependency. It is not
meant to match any real tokenizer, only to be stable and conservative.

Heuristic
---------
1. CJK characters (ideographs ``U+4E00-U+9FA5``, CJK symbols and punctuation
   ``U+3000-U+303F``, half-/full-width forms ``U+FF00-U+FFEF``) weigh
   1.5 tokens each.
2. Those characters are replaced by spaces, every remaining non-word,
   non-space character is replaced by a space, and the rest is split on
   whitespace; each word weighs 1.3 tokens.
3. The weighted sum is rounded up.

Weights are kept as integer tenths so the rounding never suffers from float
drift (``3 * 1.3`` is ``3.9000000000000004`` in binary floating point).
"""

from __future__ import annotations

import re

CJK_PATTERN = re.compile(r"[\u4e00-\u9fa5\u3000-\u303f\uff00-\uffef]")
_NON_WORD = re.compile(r"[^\w\s]")

# Weights in tenths of a token.
_CJK_WEIGHT = 15
_WORD_WEIGHT = 13


def count_cjk(text: str) -> int:
    """Return the number of characters in the CJK ranges."""
    return len(CJK_PATTERN.findall(text))


def count_words(text: str) -> int:
    """Return the number of non-CJK words once punctuation is stripped."""
    stripped = _NON_WORD.sub(" ", CJK_PATTERN.sub(" ", text))
    return len(stripped.split())


def estimate_tokens(text: str) -> int:
    """Estimate the token count of ``text`` (always ``>= 0``).

    >>> estimate_tokens("")
    0
    >>> estimate_tokens("感冒")
    3
    >>> estimate_tokens("common cold")
    3
    """
    if not text:
        return 0
    tenths = count_cjk(text) * _CJK_WEIGHT + count_words(text) * _WORD_WEIGHT
    return -(-tenths // 10)


__all__ = ["estimate_tokens", "count_cjk", "count_words", "CJK_PATTERN"]
