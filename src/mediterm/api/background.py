# src/mediterm/api/background.py
"""
Background runner for translation jobs.

``run_translation_task`` is scheduled through FastAPI's ``BackgroundTasks``.
It drives the async pipeline on the server's event loop, mirrors progress
labels into the job store, and never raises to its caller: failures are
recorded on the job with their error kind.
"""

from __future__ import annotations

from mediterm.api.job_store import get_job_store
from mediterm.api.schemas import Credentials, TranslationRequest
from mediterm.core.contracts.translation import TranslationResult
from mediterm.core.dictionary import TermDictionary
from mediterm.core.errors import AuthError, QuotaExceeded, StaleRequestError, TransportError
from mediterm.core.settings import get_logger, load_settings
from mediterm.llm.models import CompletionConfig
from mediterm.llm.service import CompletionService, LLMCompletionService
from mediterm.pipelines.translation import Translator

logger = get_logger(__name__)


def get_completion_service() -> CompletionService:
    """Return the completion service used by API jobs.

    Split into a helper so tests can monkeypatch it with a fake service.
    """
    return LLMCompletionService()


def build_credentials(credentials: Credentials | None) -> CompletionConfig:
    """Overlay request credentials on the server's default credentials."""
    defaults = load_settings().completion_config()
    if credentials is None:
        return defaults
    return CompletionConfig(
        provider=credentials.provider or defaults.provider,
        api_key=credentials.api_key or defaults.api_key,
        base_url=credentials.base_url or defaults.base_url,
        model=credentials.model or defaults.model,
    )


def error_kind(exc: BaseException) -> str:
    if isinstance(exc, AuthError):
        return "auth"
    if isinstance(exc, QuotaExceeded):
        return "quota"
    if isinstance(exc, TransportError):
        return "transport"
    if isinstance(exc, StaleRequestError):
        return "stale"
    return "internal"


async def run_translation(
    request: TranslationRequest, translator: Translator, **kwargs: object
) -> TranslationResult:
    """Run ``request`` through ``translator`` (shared by the sync route and jobs)."""
    return await translator.translate(
        request.text,
        request.mode,
        build_credentials(request.credentials),
        dictionary=TermDictionary(request.terms),
        max_tokens_per_chunk=request.max_tokens_per_chunk,
        source_language_name=request.source_language_name,
        target_language_name=request.target_language_name,
        source_side=request.source_side,
        **kwargs,  # type: ignore[arg-type]
    )


async def run_translation_task(job_id: str, request: TranslationRequest) -> None:
    """Execute one translation job and record its outcome in the job store."""
    store = get_job_store()
    store.mark_processing(job_id)

    try:
        result = await run_translation(
            request,
            Translator(get_completion_service()),
            on_progress=lambda label: store.update_progress(job_id, label),
        )
    except Exception as exc:
        kind = error_kind(exc)
        logger.warning("Job %s failed (%s): %s", job_id, kind, exc)
        store.mark_failed(job_id, str(exc), kind)
        return

    store.mark_completed(job_id, result)


__all__ = [
    "run_translation_task",
    "run_translation",
    "get_completion_service",
    "build_credentials",
    "error_kind",
]
