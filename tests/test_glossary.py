"""Tests for glossary construction and per-chunk filtering."""

from __future__ import annotations

from mediterm.core.contracts.glossary import GlossaryEntry
from mediterm.core.contracts.term import Term
from mediterm.core.dictionary import TermDictionary
from mediterm.pipelines.glossary import build_glossary, filter_glossary, relevant_terms


def test_strong_matches_become_entries_once(medical_terms: TermDictionary) -> None:
    text = "患者普通感冒伴发热，发热三天，感冒未愈。"

    glossary = build_glossary(text, medical_terms, "a")

    assert glossary == [
        GlossaryEntry(source="普通感冒", target="common cold", term_id="t_cold"),
        GlossaryEntry(source="发热", target="fever", term_id="t_fever"),
    ]


def test_alias_entries_keep_the_matched_text(medical_terms: TermDictionary) -> None:
    glossary = build_glossary("发烧两天", medical_terms, "a")

    assert glossary == [GlossaryEntry(source="发烧", target="fever", term_id="t_fever")]


def test_entries_differ_by_surface_form(medical_terms: TermDictionary) -> None:
    glossary = build_glossary("Common cold, then a common cold again.", medical_terms, "b")

    assert [(e.source, e.target) for e in glossary] == [
        ("Common cold", "普通感冒"),
        ("common cold", "普通感冒"),
    ]


def test_terms_without_a_counterpart_are_skipped() -> None:
    terms = [Term(id="x", label_b="aspirin")]

    assert build_glossary("Take aspirin.", terms, "b") == []


def test_filter_glossary_is_case_insensitive() -> None:
    glossary = [
        GlossaryEntry(source="Common cold", target="普通感冒", term_id="t_cold"),
        GlossaryEntry(source="fever", target="发热", term_id="t_fever"),
    ]

    kept = filter_glossary(glossary, "The COMMON COLD is mild.")

    assert [e.term_id for e in kept] == ["t_cold"]


def test_relevant_terms_resolve_ids(medical_terms: TermDictionary) -> None:
    glossary = [
        GlossaryEntry(source="发热", target="fever", term_id="t_fever"),
        GlossaryEntry(source="发烧", target="fever", term_id="t_fever"),
    ]

    assert [t.id for t in relevant_terms(glossary, medical_terms)] == ["t_fever"]
