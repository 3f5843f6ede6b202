"""Tests for the token-bounded chunker."""

from __future__ import annotations

import pytest

from mediterm.text.chunker import calculate_chunk_size, split_into_chunks
from mediterm.text.tokens import estimate_tokens


def _assert_well_formed(text: str, chunks: list[str], budget: int) -> None:
    assert "".join(chunks) == text
    for chunk in chunks:
        assert chunk
        assert estimate_tokens(chunk) <= budget or len(chunk) == 1


def test_calculate_chunk_size_spreads_evenly() -> None:
    assert calculate_chunk_size(800, 1000) == 800
    assert calculate_chunk_size(1000, 1000) == 1000
    assert calculate_chunk_size(1001, 1000) == 501
    assert calculate_chunk_size(2200, 1000) == 734


def test_calculate_chunk_size_rejects_non_positive_target() -> None:
    with pytest.raises(ValueError):
        calculate_chunk_size(10, 0)


def test_text_within_budget_is_one_chunk() -> None:
    assert split_into_chunks("A short note.", 100) == ["A short note."]


def test_empty_text_has_no_chunks() -> None:
    assert split_into_chunks("", 10) == []


def test_non_positive_budget_is_rejected() -> None:
    with pytest.raises(ValueError):
        split_into_chunks("text", 0)


def test_sentences_split_at_sentence_boundaries() -> None:
    chunks = split_into_chunks("A. B. C.", 2)

    assert chunks == ["A.", " B.", " C."]
    assert all(c.endswith(".") for c in chunks)
    _assert_well_formed("A. B. C.", chunks, 2)


def test_paragraphs_are_preferred_over_sentences() -> None:
    text = "para one.\n\npara two."
    chunks = split_into_chunks(text, 3)

    assert chunks == ["para one.\n\n", "para two."]


def test_clauses_are_used_when_there_are_no_sentences() -> None:
    text = "alpha, beta, gamma"
    chunks = split_into_chunks(text, 2)

    assert chunks == ["alpha,", " beta,", " gamma"]


def test_cjk_sentences_split_on_full_width_stops() -> None:
    text = "感冒。发热。咳嗽。"
    chunks = split_into_chunks(text, 5)

    assert chunks == ["感冒。", "发热。", "咳嗽。"]


def test_unsplittable_run_falls_back_to_halving() -> None:
    text = "abcdefghij"
    chunks = split_into_chunks(text, 1)

    _assert_well_formed(text, chunks, 1)
    assert len(chunks) == len(text)


def test_leading_delimiter_is_kept() -> None:
    text = "\n\nFirst paragraph here.\nSecond paragraph follows here."
    chunks = split_into_chunks(text, 5)

    _assert_well_formed(text, chunks, 5)
    assert chunks[0].startswith("\n\n")


@pytest.mark.parametrize("budget", [1, 2, 3, 5, 8, 13, 50])  # type: ignore[misc]
def test_reconstruction_holds_for_any_budget(budget: int) -> None:
    text = (
        "患者三天前出现普通感冒症状，伴有发热和咳嗽。查体提示上呼吸道感染！\n\n"
        "The patient reports a common cold; fever and cough started three days ago. "
        "Rest, fluids, and follow-up in one week?\n"
        "Supercalifragilisticexpialidocious"
    )
    _assert_well_formed(text, split_into_chunks(text, budget), budget)
