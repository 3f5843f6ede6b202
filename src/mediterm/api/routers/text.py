"""
Network-free text endpoints: token estimates and term segmentation.

These back live hints and highlighting in a front-end and never call the
completion service.
"""

from __future__ import annotations

from fastapi import APIRouter

from mediterm.api.schemas import SegmentRequest, SegmentResponse, TokensRequest, TokensResponse
from mediterm.core.dictionary import TermDictionary
from mediterm.core.settings import load_settings
from mediterm.text.chunker import calculate_chunk_size, split_into_chunks
from mediterm.text.language import detect_source_side
from mediterm.text.segmenter import detected_terms, segment
from mediterm.text.tokens import estimate_tokens

router = APIRouter(tags=["Text"])


@router.post("/tokens", response_model=TokensResponse, summary="Estimate tokens and chunk plan")
async def tokens(request: TokensRequest) -> TokensResponse:
    budget = request.max_tokens_per_chunk or load_settings().max_tokens_per_chunk
    total = estimate_tokens(request.text)
    if total <= budget:
        plan = [total] if request.text else []
    else:
        chunks = split_into_chunks(request.text, calculate_chunk_size(total, budget))
        plan = [estimate_tokens(chunk) for chunk in chunks]
    return TokensResponse(tokens=total, budget=budget, chunk_tokens=plan)


@router.post("/segment", response_model=SegmentResponse, summary="Locate dictionary terms")
async def segment_text(request: SegmentRequest) -> SegmentResponse:
    side = request.side or detect_source_side(request.text)
    segments = segment(request.text, TermDictionary(request.terms), side)
    return SegmentResponse(side=side, segments=segments, detected=detected_terms(segments))


__all__ = ["router"]
