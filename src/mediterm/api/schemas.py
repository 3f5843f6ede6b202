"""
Request/response models for the MediTerm HTTP API.

Domain contracts (``Term``, ``TextSegment``, ``TranslationResult``) are reused
as-is; this module only adds the envelopes around them.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field

from mediterm.core.contracts.segment import TextSegment
from mediterm.core.contracts.term import Side, Term
from mediterm.core.contracts.translation import TranslationMode, TranslationResult
from mediterm.core.settings import ProviderName


class JobStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class Credentials(BaseModel):
    """Completion-service credentials; unset fields fall back to server settings."""

    provider: ProviderName | None = None
    api_key: str | None = None
    base_url: str | None = None
    model: str | None = None


class TranslationRequest(BaseModel):
    text: str = Field(min_length=1, description="Source text to translate.")
    mode: TranslationMode = "fast"
    terms: list[Term] = Field(default_factory=list, description="Term dictionary, priority order.")
    source_side: Side | None = Field(default=None, description="Detected from the text when omitted.")
    source_language_name: str | None = None
    target_language_name: str | None = None
    max_tokens_per_chunk: int | None = Field(default=None, ge=1)
    credentials: Credentials | None = None


class JobInfo(BaseModel):
    """State of one asynchronous translation job."""

    job_id: str
    status: JobStatus
    created_at: datetime
    progress: str | None = None
    error: str | None = None
    error_kind: str | None = None
    result: TranslationResult | None = None


class TokensRequest(BaseModel):
    text: str
    max_tokens_per_chunk: int | None = Field(default=None, ge=1)


class TokensResponse(BaseModel):
    tokens: int
    budget: int
    chunk_tokens: list[int] = Field(description="Estimated tokens of each planned chunk.")


class SegmentRequest(BaseModel):
    text: str
    terms: list[Term] = Field(default_factory=list)
    side: Side | None = None


class SegmentResponse(BaseModel):
    side: Side
    segments: list[TextSegment]
    detected: list[Term]


__all__ = [
    "JobStatus",
    "Credentials",
    "TranslationRequest",
    "JobInfo",
    "TokensRequest",
    "TokensResponse",
    "SegmentRequest",
    "SegmentResponse",
]
