# tests/test_api.py
"""
Integration tests for the MediTerm HTTP API.

The completion service is replaced by a fake through
``mediterm.api.background.get_completion_service``, so no provider is called.

Scenarios
---------
1. **Health** and the network-free text endpoints.
2. **Jobs**: submit -> 202 -> poll -> completed / failed.
3. **Inline translation**: result on success, error kinds mapped to statuses.
"""

from __future__ import annotations

from collections.abc import Callable, Generator

import pytest
from fakes import FakeCompletionService, HTTPStatusError
from fastapi.testclient import TestClient

from mediterm import __version__
from mediterm.api.app import create_app
from mediterm.api.job_store import JobStore, get_job_store
from mediterm.api.schemas import JobStatus

TERMS = [{"id": "t_cold", "label_a": "普通感冒", "label_b": "common cold", "core_a": "感冒"}]

Responder = Callable[[str, str | None], str]


@pytest.fixture  # type: ignore[misc]
def client() -> Generator[TestClient, None, None]:
    get_job_store()._jobs.clear()
    with TestClient(create_app()) as c:
        yield c


@pytest.fixture  # type: ignore[misc]
def use_service(monkeypatch: pytest.MonkeyPatch) -> Callable[[Responder], FakeCompletionService]:
    def install(responder: Responder) -> FakeCompletionService:
        service = FakeCompletionService(responder=responder)
        monkeypatch.setattr(
            "mediterm.api.background.get_completion_service", lambda: service
        )
        return service

    return install


def _raise(exc: Exception) -> Responder:
    def respond(prompt: str, system: str | None) -> str:
        raise exc

    return respond


def test_health_check(client: TestClient) -> None:
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "version": __version__}


def test_tokens_endpoint(client: TestClient) -> None:
    response = client.post("/tokens", json={"text": "感冒"})
    assert response.status_code == 200
    data = response.json()
    assert data["tokens"] == 3
    assert data["chunk_tokens"] == [3]

    planned = client.post("/tokens", json={"text": "A. B. C.", "max_tokens_per_chunk": 2}).json()
    assert planned["tokens"] == 4
    assert planned["budget"] == 2
    assert planned["chunk_tokens"] == [2, 2, 2]


def test_segment_endpoint(client: TestClient) -> None:
    response = client.post("/segment", json={"text": "患者普通感冒，后又感冒。", "terms": TERMS})
    assert response.status_code == 200
    data = response.json()

    assert data["side"] == "a"
    assert "".join(seg["text"] for seg in data["segments"]) == "患者普通感冒，后又感冒。"
    kinds = [(seg["text"], seg["kind"]) for seg in data["segments"] if seg["kind"] != "none"]
    assert kinds == [("普通感冒", "strong"), ("感冒", "weak")]
    assert [term["id"] for term in data["detected"]] == ["t_cold"]


def test_submit_and_poll_flow(
    client: TestClient, use_service: Callable[[Responder], FakeCompletionService]
) -> None:
    service = use_service(lambda p, s: "The patient has a common cold.")

    response = client.post("/translations", json={"text": "患者普通感冒。", "terms": TERMS})
    assert response.status_code == 202
    job = response.json()
    assert job["status"] == JobStatus.PENDING.value

    # TestClient runs background tasks before returning the response.
    polled = client.get(f"/jobs/{job['job_id']}").json()
    assert polled["status"] == JobStatus.COMPLETED.value
    assert polled["progress"] is None
    assert polled["result"]["final_text"] == "The patient has a common cold."
    assert polled["result"]["glossary"][0]["target"] == "common cold"
    assert len(service.calls) == 1


def test_failed_job_records_error_kind(
    client: TestClient, use_service: Callable[[Responder], FakeCompletionService]
) -> None:
    use_service(_raise(HTTPStatusError("invalid key", 401)))

    job = client.post("/translations", json={"text": "患者普通感冒。"}).json()
    polled = client.get(f"/jobs/{job['job_id']}").json()

    assert polled["status"] == JobStatus.FAILED.value
    assert polled["error_kind"] == "auth"
    assert "invalid key" in polled["error"]


def test_unknown_job_is_404(client: TestClient) -> None:
    response = client.get("/jobs/does-not-exist")
    assert response.status_code == 404


def test_translate_inline(
    client: TestClient, use_service: Callable[[Responder], FakeCompletionService]
) -> None:
    use_service(lambda p, s: "The patient has a common cold.")

    response = client.post(
        "/translate",
        json={
            "text": "患者普通感冒。",
            "mode": "fast",
            "terms": TERMS,
            "credentials": {"provider": "glm", "api_key": "k"},
        },
    )

    assert response.status_code == 200
    data = response.json()
    assert data["final_text"] == "The patient has a common cold."
    assert data["review_notes"] is None
    assert data["chunk_count"] == 1


def test_translate_inline_auth_error(
    client: TestClient, use_service: Callable[[Responder], FakeCompletionService]
) -> None:
    use_service(_raise(HTTPStatusError("forbidden", 403)))

    response = client.post("/translate", json={"text": "患者普通感冒。"})

    assert response.status_code == 401
    data = response.json()
    assert data["error"] == "auth"
    assert data["hint"] == "Check your API key in the settings."


def test_translate_inline_transport_error(
    client: TestClient, use_service: Callable[[Responder], FakeCompletionService]
) -> None:
    use_service(_raise(RuntimeError("connection reset by peer")))

    response = client.post("/translate", json={"text": "患者普通感冒。"})

    assert response.status_code == 502
    assert response.json()["error"] == "transport"


def test_translate_rejects_empty_text(client: TestClient) -> None:
    response = client.post("/translate", json={"text": ""})
    assert response.status_code == 422


def test_job_store_ignores_updates_after_completion() -> None:
    store = get_job_store()
    job = store.create_job()

    store.mark_processing(job.job_id)
    store.update_progress(job.job_id, "Chunk 1/2: Translating")
    assert store.get_job(job.job_id).progress == "Chunk 1/2: Translating"  # type: ignore[union-attr]

    store.mark_failed(job.job_id, "boom", "transport")
    store.update_progress(job.job_id, "Chunk 2/2: Translating")
    store.mark_processing(job.job_id)

    finished = store.get_job(job.job_id)
    assert finished is not None
    assert finished.status == JobStatus.FAILED
    assert finished.progress is None
    assert finished.error_kind == "transport"


def test_job_store_drops_oldest_finished_jobs_beyond_cap() -> None:
    store = JobStore(max_finished=2)
    running = store.create_job()
    store.mark_processing(running.job_id)
    done = [store.create_job() for _ in range(3)]
    for job in done:
        store.mark_failed(job.job_id, "boom", "transport")

    newest = store.create_job()

    assert store.get_job(done[0].job_id) is None
    assert store.get_job(done[1].job_id) is not None
    assert store.get_job(done[2].job_id) is not None
    # unfinished jobs are never evicted
    assert store.get_job(running.job_id) is not None
    assert store.get_job(newest.job_id) is not None


def test_server_banner_reports_provider_and_key(monkeypatch: pytest.MonkeyPatch) -> None:
    from mediterm.api import server
    from mediterm.core.settings import load_settings

    monkeypatch.delenv("MEDITERM_API_KEY", raising=False)
    monkeypatch.delenv("MEDITERM_MODEL", raising=False)
    monkeypatch.delenv("MEDITERM_BASE_URL", raising=False)
    monkeypatch.setenv("MEDITERM_PROVIDER", "glm")
    monkeypatch.setenv("ZHIPU_API_KEY", "zk-123")
    load_settings.cache_clear()
    try:
        banner = "\n".join(server._startup_banner())
    finally:
        monkeypatch.undo()
        load_settings.cache_clear()

    assert "glm (glm-4-flash)" in banner
    assert "found in ZHIPU_API_KEY" in banner
    assert "1s, 2s, 4s" in banner
