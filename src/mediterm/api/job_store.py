"""
In-memory job store for asynchronous translation jobs.

Jobs move PENDING -> PROCESSING -> COMPLETED | FAILED. While processing, the
pipeline's progress labels ("Chunk 2/3: Reviewing") are written to
``JobInfo.progress`` so clients polling ``GET /jobs/{id}`` can show the
current step. Terminal jobs are never touched again, and only the most
recent ``max_finished`` of them are kept; older ones are dropped, oldest
first, whenever a new job is created.

This is a volatile store: all jobs are lost when the server restarts.
"""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from typing import Any, ClassVar

from mediterm.api.schemas import JobInfo, JobStatus
from mediterm.core.contracts.translation import TranslationResult
from mediterm.core.settings import load_settings

_TERMINAL = frozenset({JobStatus.COMPLETED, JobStatus.FAILED})


class JobStore:
    """Dictionary-backed registry of :class:`JobInfo` records, keyed by job id."""

    _instance: ClassVar[JobStore | None] = None

    def __init__(self, max_finished: int = 500) -> None:
        self._jobs: dict[str, JobInfo] = {}
        self._max_finished = max_finished

    @classmethod
    def get_instance(cls) -> JobStore:
        """Return the process-wide store, creating it on first use."""
        if cls._instance is None:
            cls._instance = cls(max_finished=load_settings().max_finished_jobs)
        return cls._instance

    def create_job(self) -> JobInfo:
        job = JobInfo(
            job_id=uuid.uuid4().hex,
            status=JobStatus.PENDING,
            created_at=datetime.now(UTC),
        )
        self._evict_finished()
        self._jobs[job.job_id] = job
        return job

    def _evict_finished(self) -> None:
        # dicts keep insertion order, so the first finished ids are the oldest
        finished = [job_id for job_id, job in self._jobs.items() if job.status in _TERMINAL]
        for job_id in finished[: max(len(finished) - self._max_finished, 0)]:
            del self._jobs[job_id]

    def get_job(self, job_id: str) -> JobInfo | None:
        return self._jobs.get(job_id)

    def _update(self, job_id: str, **changes: Any) -> None:
        """Apply ``changes`` to a live job; unknown or finished jobs are ignored."""
        job = self._jobs.get(job_id)
        if job is None or job.status in _TERMINAL:
            return
        for field_name, value in changes.items():
            setattr(job, field_name, value)

    def mark_processing(self, job_id: str) -> None:
        self._update(job_id, status=JobStatus.PROCESSING)

    def update_progress(self, job_id: str, label: str) -> None:
        """Record the label of the step the pipeline just started."""
        self._update(job_id, progress=label)

    def mark_completed(self, job_id: str, result: TranslationResult) -> None:
        self._update(job_id, status=JobStatus.COMPLETED, progress=None, result=result)

    def mark_failed(self, job_id: str, error: str, kind: str) -> None:
        """Finish a job as FAILED; ``kind`` is auth, quota, transport, stale or internal."""
        self._update(job_id, status=JobStatus.FAILED, progress=None, error=error, error_kind=kind)


def get_job_store() -> JobStore:
    return JobStore.get_instance()


__all__ = ["JobStore", "get_job_store"]
