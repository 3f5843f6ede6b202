"""Helpers for cleaning raw completion text before it is used."""

from __future__ import annotations

import json
import re
from typing import Any

_FENCE = re.compile(r"^\s*```[\w-]*[ \t]*\n?(.*?)\n?```\s*$", re.DOTALL)
_FENCED_BLOCK = re.compile(r"```(?:json)?\s*\n?([\s\S]*?)\n?```")


def strip_markdown_fences(text: str) -> str:
    """Drop a Markdown code fence wrapped around the whole completion.

    >>> strip_markdown_fences("```\\nHello\\n```")
    'Hello'
    >>> strip_markdown_fences("plain")
    'plain'
    """
    match = _FENCE.match(text)
    if match:
        return match.group(1).strip()
    return text.strip()


def extract_json(text: str) -> Any:
    """Best-effort JSON extraction from model output.

    Tries, in order: the whole text, the first fenced block, the outermost
    ``[...]`` block, the outermost ``{...}`` block.

    Raises
    ------
    ValueError
        If none of them parses.
    """
    text = text.strip()
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        pass

    match = _FENCED_BLOCK.search(text)
    if match:
        try:
            return json.loads(match.group(1).strip())
        except json.JSONDecodeError:
            pass

    for opener, closer in (("[", "]"), ("{", "}")):
        start = text.find(opener)
        end = text.rfind(closer)
        if start != -1 and end > start:
            try:
                return json.loads(text[start : end + 1])
            except json.JSONDecodeError:
                continue

    raise ValueError("no JSON value found in completion output")


__all__ = ["strip_markdown_fences", "extract_json"]
