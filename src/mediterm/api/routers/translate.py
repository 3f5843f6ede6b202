"""
API routes for translation.

Endpoints
---------
- ``POST /translations``: submit a translation job (202, returns the job).
- ``GET /jobs/{job_id}``: poll status, current step label and result.
- ``POST /translate``: run a translation inline and return the result;
  pipeline errors map to HTTP statuses in the app's exception handlers.
"""

from __future__ import annotations

from fastapi import APIRouter, BackgroundTasks, HTTPException, status

from mediterm.api import background
from mediterm.api.job_store import get_job_store
from mediterm.api.schemas import JobInfo, TranslationRequest
from mediterm.core.contracts.translation import TranslationResult
from mediterm.pipelines.translation import Translator

router = APIRouter(tags=["Translation"])


@router.post(
    "/translations",
    response_model=JobInfo,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Submit a translation job",
)
async def submit_translation(
    request: TranslationRequest,
    background_tasks: BackgroundTasks,
) -> JobInfo:
    """
    Create a job, schedule the pipeline, and return immediately.

    Poll ``GET /jobs/{job_id}`` until the status is ``completed`` or ``failed``.
    """
    store = get_job_store()
    job = store.create_job()
    background_tasks.add_task(background.run_translation_task, job.job_id, request)
    return job


@router.get(
    "/jobs/{job_id}",
    response_model=JobInfo,
    summary="Get job status and results",
)
async def get_job_status(job_id: str) -> JobInfo:
    job = get_job_store().get_job(job_id)
    if not job:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Job {job_id} not found",
        )
    return job


@router.post(
    "/translate",
    response_model=TranslationResult,
    summary="Translate synchronously",
)
async def translate_now(request: TranslationRequest) -> TranslationResult:
    return await background.run_translation(
        request, Translator(background.get_completion_service())
    )


__all__ = ["router"]
