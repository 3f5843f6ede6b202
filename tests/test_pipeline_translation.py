"""End-to-end tests of the translation pipeline against a fake service."""

from __future__ import annotations

import asyncio
import json

import pytest
from fakes import FakeCompletionService, HTTPStatusError, step_of

from mediterm.core.contracts.translation import TranslationResult
from mediterm.core.dictionary import TermDictionary
from mediterm.core.errors import AuthError, QuotaExceeded, StaleRequestError, TransportError
from mediterm.llm.models import CompletionConfig
from mediterm.llm.resilient import ResilientCompleter
from mediterm.pipelines.translation import Translator, translate

COLD_ZH = "患者普通感冒。"
COLD_EN = "The patient has a common cold."


def _chunk_from_align_prompt(prompt: str) -> str:
    head = prompt.split("Source Text:\n", 1)[1]
    return head.split("\n\nTranslation:\n", 1)[0]


def _professional_responder(polished: str, align: str):
    def respond(prompt: str, system: str | None) -> str:
        step = step_of(system)
        if step == "draft":
            return "```\nThe patient has a cold.\n```"
        if step == "review":
            return "术语：普通感冒应译为 common cold"
        if step == "polish":
            return polished
        return align

    return respond


# --------------------------------------------------------------------------- #
# Single chunk
# --------------------------------------------------------------------------- #


def test_fast_mode_single_chunk(config: CompletionConfig, medical_terms: TermDictionary) -> None:
    service = FakeCompletionService(responder=lambda p, s: f"```\n{COLD_EN}\n```")

    result = asyncio.run(
        Translator(service).translate(COLD_ZH, "fast", config, dictionary=medical_terms)
    )

    assert result.final_text == COLD_EN
    assert result.review_notes is None
    assert result.alignments is None
    assert result.chunk_count == 1
    assert [(g.source, g.target) for g in result.glossary] == [("普通感冒", "common cold")]

    assert len(service.calls) == 1
    call = service.calls[0]
    assert call.prompt == COLD_ZH
    assert "from Chinese to English" in (call.system_instruction or "")
    assert '- "普通感冒" -> "common cold"' in (call.system_instruction or "")


def test_professional_mode_single_chunk(
    config: CompletionConfig, medical_terms: TermDictionary
) -> None:
    align = json.dumps([{"term_id": "t_cold", "source_spans": [[2, 6]], "target_spans": [[18, 29]]}])
    service = FakeCompletionService(responder=_professional_responder(COLD_EN, align))
    labels: list[str] = []

    result = asyncio.run(
        Translator(service).translate(
            COLD_ZH, "professional", config, dictionary=medical_terms, on_progress=labels.append
        )
    )

    assert service.steps() == ["draft", "review", "polish", "align"]
    assert labels == ["Translating", "Reviewing", "Polishing", "Aligning terms"]
    assert result.final_text == COLD_EN
    assert result.review_notes == "术语：普通感冒应译为 common cold"
    assert result.mode == "professional"

    assert result.alignments is not None
    [alignment] = result.alignments
    assert alignment.term_id == "t_cold"
    assert COLD_ZH[2:6] == "普通感冒"
    assert alignment.source_spans == [(2, 6)]
    assert result.final_text[18:29] == "common cold"
    assert alignment.target_spans == [(18, 29)]

    # Polish sees the draft and the review notes.
    polish_call = service.calls[2]
    assert "Current Translation (English):\nThe patient has a cold." in polish_call.prompt
    assert "术语：普通感冒应译为 common cold" in polish_call.prompt


def test_professional_mode_without_terms_skips_align(config: CompletionConfig) -> None:
    service = FakeCompletionService(responder=_professional_responder(COLD_EN, "[]"))

    result = asyncio.run(Translator(service).translate(COLD_ZH, "professional", config))

    assert service.steps() == ["draft", "review", "polish"]
    assert result.alignments == []
    assert result.glossary == []


def test_malformed_alignment_output_is_recovered(
    config: CompletionConfig, medical_terms: TermDictionary
) -> None:
    service = FakeCompletionService(
        responder=_professional_responder(COLD_EN, "I am unable to align these terms.")
    )

    result = asyncio.run(
        Translator(service).translate(COLD_ZH, "professional", config, dictionary=medical_terms)
    )

    assert len(service.calls) == 4
    assert result.final_text == COLD_EN
    assert result.alignments == []


def test_blank_text_makes_no_calls(config: CompletionConfig) -> None:
    service = FakeCompletionService(responder=lambda p, s: "unused")

    result = asyncio.run(Translator(service).translate("  \n ", "professional", config))

    assert service.calls == []
    assert result.final_text == ""
    assert result.review_notes == ""
    assert result.alignments == []


def test_non_positive_budget_is_rejected(config: CompletionConfig) -> None:
    service = FakeCompletionService(responder=lambda p, s: "unused")

    with pytest.raises(ValueError):
        asyncio.run(
            Translator(service).translate("text", "fast", config, max_tokens_per_chunk=-1)
        )


# --------------------------------------------------------------------------- #
# Multiple chunks
# --------------------------------------------------------------------------- #


def test_professional_mode_merges_chunks(
    config: CompletionConfig, medical_terms: TermDictionary
) -> None:
    source = (
        "Patient one has a common cold.\n"
        "Patient two has a common cold.\n"
        "Patient three has a common cold."
    )

    def respond(prompt: str, system: str | None) -> str:
        step = step_of(system)
        if step == "draft":
            return "患者感冒。"
        if step == "review":
            return "建议使用普通感冒"
        if step == "polish":
            return "患者有普通感冒。"
        chunk = _chunk_from_align_prompt(prompt)
        start = chunk.index("common cold")
        return json.dumps(
            [
                {
                    "term_id": "t_cold",
                    "source_spans": [[start, start + len("common cold")]],
                    "target_spans": [[3, 7]],
                }
            ]
        )

    service = FakeCompletionService(responder=respond)
    labels: list[str] = []

    result = asyncio.run(
        Translator(service).translate(
            source,
            "professional",
            config,
            dictionary=medical_terms,
            max_tokens_per_chunk=10,
            on_progress=labels.append,
        )
    )

    assert result.chunk_count == 3
    assert len(service.calls) == 12
    assert result.final_text == "\n\n".join(["患者有普通感冒。"] * 3)
    assert labels[:4] == [
        "Chunk 1/3: Translating",
        "Chunk 1/3: Reviewing",
        "Chunk 1/3: Polishing",
        "Chunk 1/3: Aligning terms",
    ]
    assert labels[-1] == "Chunk 3/3: Aligning terms"

    assert result.review_notes is not None
    assert result.review_notes.startswith("[Chunk 1/3]\n建议使用普通感冒")
    assert "[Chunk 3/3]" in result.review_notes

    assert result.alignments is not None
    [alignment] = result.alignments
    assert len(alignment.source_spans) == 3
    assert len(alignment.target_spans) == 3
    for start, end in alignment.source_spans:
        assert source[start:end] == "common cold"
    for start, end in alignment.target_spans:
        assert result.final_text[start:end] == "普通感冒"


def test_fast_mode_filters_glossary_per_chunk(
    config: CompletionConfig, medical_terms: TermDictionary
) -> None:
    source = (
        "Patient one has a common cold.\n"
        "Patient two is fine today.\n"
        "Patient three has a fever."
    )
    counter = iter(range(1, 10))
    service = FakeCompletionService(responder=lambda p, s: f"译文{next(counter)}")

    result = asyncio.run(
        Translator(service).translate(
            source, "fast", config, dictionary=medical_terms, max_tokens_per_chunk=12
        )
    )

    assert result.chunk_count == 3
    assert result.final_text == "译文1\n\n译文2\n\n译文3"
    assert result.review_notes is None
    assert [g.term_id for g in result.glossary] == ["t_cold", "t_fever"]

    first, second, third = (call.system_instruction or "" for call in service.calls)
    assert "from English to Chinese" in first
    assert '- "common cold" -> "普通感冒"' in first
    assert "fever" not in first
    assert "Mandatory Glossary" not in second
    assert '- "fever" -> "发热"' in third


def test_failure_in_later_chunk_aborts(
    config: CompletionConfig, medical_terms: TermDictionary
) -> None:
    source = (
        "Patient one has a common cold.\n"
        "Patient two is fine today.\n"
        "Patient three has a fever."
    )

    def respond(prompt: str, system: str | None) -> str:
        if "Patient two" in prompt:
            raise HTTPStatusError("upstream exploded", 500)
        return "ok"

    service = FakeCompletionService(responder=respond)

    with pytest.raises(TransportError):
        asyncio.run(
            Translator(service).translate(
                source, "fast", config, dictionary=medical_terms, max_tokens_per_chunk=12
            )
        )
    assert len(service.calls) == 2


# --------------------------------------------------------------------------- #
# Errors
# --------------------------------------------------------------------------- #


def test_auth_failure_propagates(config: CompletionConfig) -> None:
    def respond(prompt: str, system: str | None) -> str:
        raise HTTPStatusError("invalid api key", 401)

    service = FakeCompletionService(responder=respond)

    with pytest.raises(AuthError):
        asyncio.run(Translator(service).translate(COLD_ZH, "professional", config))
    assert len(service.calls) == 1


def test_quota_exhaustion_propagates(config: CompletionConfig) -> None:
    delays: list[float] = []

    async def fake_sleep(seconds: float) -> None:
        delays.append(seconds)

    def respond(prompt: str, system: str | None) -> str:
        raise HTTPStatusError("RESOURCE_EXHAUSTED", 429)

    service = FakeCompletionService(responder=respond)
    translator = Translator(completer=ResilientCompleter(service, sleep=fake_sleep))

    with pytest.raises(QuotaExceeded):
        asyncio.run(translator.translate(COLD_ZH, "fast", config))
    assert len(service.calls) == 4
    assert delays == [1.0, 2.0, 4.0]


# --------------------------------------------------------------------------- #
# Superseded requests
# --------------------------------------------------------------------------- #


class GatedService:
    """Blocks the draft of ``"first text"`` until ``gate`` is set."""

    def __init__(self, fail_first: bool = False) -> None:
        self.gate = asyncio.Event()
        self.fail_first = fail_first
        self.steps: list[str] = []

    async def complete(
        self, config: CompletionConfig, prompt: str, system_instruction: str | None = None
    ) -> str:
        self.steps.append(step_of(system_instruction))
        if prompt == "first text":
            await self.gate.wait()
            if self.fail_first:
                raise HTTPStatusError("late failure", 500)
        return f"translated: {prompt}"


async def _race(
    service: GatedService, config: CompletionConfig
) -> tuple[Translator, TranslationResult, StaleRequestError]:
    translator = Translator(service)
    first = asyncio.create_task(translator.translate("first text", "professional", config))
    for _ in range(5):
        await asyncio.sleep(0)

    second = await translator.translate("second text", "fast", config)
    service.gate.set()
    with pytest.raises(StaleRequestError) as info:
        await first
    return translator, second, info.value


@pytest.mark.parametrize("fail_first", [False, True])  # type: ignore[misc]
def test_superseded_request_is_discarded(config: CompletionConfig, fail_first: bool) -> None:
    service = GatedService(fail_first=fail_first)

    translator, second, error = asyncio.run(_race(service, config))

    assert second.final_text == "translated: second text"
    assert translator.latest_sequence == 2
    assert error.sequence == 1
    assert error.latest == 2
    # The stale request never issues its review step.
    assert service.steps == ["draft", "draft"]
    if fail_first:
        assert isinstance(error.__cause__, TransportError)


def test_module_level_translate(config: CompletionConfig, medical_terms: TermDictionary) -> None:
    service = FakeCompletionService(responder=lambda p, s: COLD_EN)

    result = asyncio.run(
        translate(COLD_ZH, "fast", config, service=service, dictionary=medical_terms)
    )

    assert result.final_text == COLD_EN
    assert len(result.glossary) == 1
