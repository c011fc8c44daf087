"""Delivery analysis endpoints."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, File, Form, HTTPException, UploadFile, status
from pydantic import ValidationError
from starlette.concurrency import run_in_threadpool

from ...errors import AnalyticsError
from ...schemas.analysis import AnalysisRequest, AnalysisResult
from ...services.analysis import FilterConfig, analyze_records
from ...services.ingestion import ingest_grids
from .ingest import ingestion_error, read_uploads

router = APIRouter(prefix="/analysis", tags=["analysis"])


@router.post("", response_model=AnalysisResult, status_code=status.HTTP_200_OK)
def analyze_sheets(payload: AnalysisRequest) -> AnalysisResult:
    """Ingest two JSON cell grids and return the full analysis for the given filters."""
    try:
        ingested = ingest_grids(payload.tours, payload.tasks)
    except AnalyticsError as exc:
        raise ingestion_error(exc) from exc
    report = analyze_records(ingested.records, payload.filters, random_source=payload.seed)
    return AnalysisResult.model_validate(report)


@router.post("/upload", response_model=AnalysisResult, status_code=status.HTTP_200_OK)
async def analyze_upload(
    tours_file: UploadFile = File(...),
    tasks_file: UploadFile = File(...),
    filters: Optional[str] = Form(None),
    seed: Optional[int] = Form(None),
) -> AnalysisResult:
    """Analyse an uploaded tours file and tasks file; ``filters`` is a JSON object."""
    try:
        filter_config = FilterConfig.model_validate_json(filters) if filters else FilterConfig()
    except ValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Invalid filters: {exc.errors(include_url=False)}",
        ) from exc

    ingested = await read_uploads(tours_file, tasks_file)
    report = await run_in_threadpool(analyze_records, ingested.records, filter_config, random_source=seed)
    return AnalysisResult.model_validate(report)
