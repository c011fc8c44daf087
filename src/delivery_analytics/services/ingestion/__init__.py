"""Ingestion service helpers."""

from .service import IngestResult, ingest_files, ingest_grids

__all__ = ["IngestResult", "ingest_grids", "ingest_files"]
