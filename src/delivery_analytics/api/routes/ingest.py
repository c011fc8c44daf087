"""Spreadsheet ingestion endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, File, HTTPException, UploadFile, status
from starlette.concurrency import run_in_threadpool

from ...data.workbook import UnsupportedFileType
from ...errors import AnalyticsError
from ...schemas.ingest import IngestRequest, IngestResponse, MergedRecordModel, TourModel
from ...services.ingestion import IngestResult, ingest_files, ingest_grids

router = APIRouter(prefix="/ingest", tags=["ingest"])


def ingestion_error(exc: UnsupportedFileType | AnalyticsError) -> HTTPException:
    """Translate an ingestion failure into the HTTP error returned to clients."""
    if isinstance(exc, AnalyticsError):
        logging.warning(f"Ingestion failed: {exc}")
        return HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=exc.to_dict())
    logging.warning(f"Rejected upload: {exc}")
    return HTTPException(status_code=status.HTTP_415_UNSUPPORTED_MEDIA_TYPE, detail=str(exc))


async def read_uploads(tours_file: UploadFile, tasks_file: UploadFile) -> IngestResult:
    for upload in (tours_file, tasks_file):
        if not upload.filename:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Filename is required.")
    tours_payload = await tours_file.read()
    tasks_payload = await tasks_file.read()
    try:
        return await run_in_threadpool(
            ingest_files, tours_payload, tours_file.filename, tasks_payload, tasks_file.filename
        )
    except (UnsupportedFileType, AnalyticsError) as exc:
        raise ingestion_error(exc) from exc


def _response(result: IngestResult) -> IngestResponse:
    return IngestResponse(
        tour_count=len(result.tours),
        task_count=len(result.tasks),
        matched_count=result.matched_count,
        tours=[TourModel.from_tour(tour) for tour in result.tours],
        records=[MergedRecordModel.from_record(record) for record in result.records],
    )


@router.post("", response_model=IngestResponse, status_code=status.HTTP_200_OK)
def ingest_sheets(payload: IngestRequest) -> IngestResponse:
    """Normalize and join two sheets sent as JSON cell grids."""
    try:
        result = ingest_grids(payload.tours, payload.tasks)
    except AnalyticsError as exc:
        raise ingestion_error(exc) from exc
    return _response(result)


@router.post("/upload", response_model=IngestResponse, status_code=status.HTTP_200_OK)
async def ingest_upload(
    tours_file: UploadFile = File(...),
    tasks_file: UploadFile = File(...),
) -> IngestResponse:
    """Normalize and join an uploaded tours file and tasks file (.xlsx or .csv)."""
    result = await read_uploads(tours_file, tasks_file)
    return _response(result)
