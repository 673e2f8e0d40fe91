"""Scoring endpoint: upload a dispensing export, get scored records back."""

import logging
from typing import Optional

from fastapi import APIRouter, File, Query, UploadFile
from fastapi.concurrency import run_in_threadpool

from rxtriage.api.dependencies import EngineDep
from rxtriage.api.models import ErrorResponse, ScoreResponse
from rxtriage.domain.ports import InputTooLargeError
from rxtriage.infrastructure.settings import settings
from rxtriage.main import process_text

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1", tags=["scoring"])


@router.post(
    "/score",
    response_model=ScoreResponse,
    responses={400: {"model": ErrorResponse}, 413: {"model": ErrorResponse}},
)
async def score_upload(
    engine: EngineDep,
    file: UploadFile = File(..., description="Dispensing export (CSV)"),
    seed: Optional[int] = Query(None, description="Seed for reproducible score smoothing"),
) -> ScoreResponse:
    """Parse and score an uploaded export.

    Parameters:
        engine: Risk engine (injected via dependency)
        file: Uploaded CSV file
        seed: Overrides the configured smoothing seed for this request

    Returns:
        ScoreResponse: Scored records in upload order plus a summary

    Raises:
        FormatError: Upload has no data rows (400)
        InputTooLargeError: Upload exceeds the size limit (413)
    """
    source = file.filename or "<upload>"
    limit = settings.max_input_bytes

    # Read one byte past the limit to detect oversized uploads without
    # holding more than that in memory
    payload = await file.read(limit + 1)
    if len(payload) > limit:
        raise InputTooLargeError(
            f"Upload {source} exceeds the {limit} byte limit",
            size=len(payload),
            limit=limit,
            source=source,
        )

    if seed is not None:
        engine = engine.with_seed(seed)

    raw_text = payload.decode("utf-8-sig", errors="replace")
    result = await run_in_threadpool(process_text, raw_text, source, engine)

    return ScoreResponse(
        source=result.source,
        record_count=len(result.records),
        elapsed_seconds=result.elapsed_seconds,
        summary=result.summary,
        records=[record.to_export_dict() for record in result.records],
    )
