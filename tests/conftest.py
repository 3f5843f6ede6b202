# tests/conftest.py
"""Shared fixtures: default credentials and a small medical dictionary."""

from __future__ import annotations

import os

import pytest

os.environ.setdefault("MEDITERM_ENV", "test")

from mediterm.core.dictionary import TermDictionary  # noqa: E402
from mediterm.llm.models import CompletionConfig  # noqa: E402


@pytest.fixture  # type: ignore[misc]
def config() -> CompletionConfig:
    return CompletionConfig(provider="gemini", api_key="test-key")


@pytest.fixture  # type: ignore[misc]
def medical_terms() -> TermDictionary:
    return TermDictionary.from_records(
        [
            {
                "id": "t_cold",
                "label_a": "普通感冒",
                "label_b": "common cold",
                "core_a": "感冒",
                "core_b": "cold",
            },
            {"id": "t_fever", "label_a": "发热", "label_b": "fever", "aliases": ["发烧"]},
            {"id": "t_cough", "label_a": "咳嗽", "label_b": "cough"},
            {
                "id": "t_urti",
                "label_a": "上呼吸道感染",
                "label_b": "upper respiratory tract infection",
            },
        ]
    )
