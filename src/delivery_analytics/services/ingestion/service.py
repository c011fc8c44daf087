"""Ingestion orchestration: raw grids in, merged records out."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Mapping, Sequence

from ...config import settings
from ...data.normalizer import Grid, normalize_grid
from ...data.records import build_tasks, build_tours, tour_start_times
from ...data.workbook import read_grid
from ...errors import EmptyDatasetError
from ...models.domain import MergedRecord, Task, Tour
from ..merge import merge_records


@dataclass(slots=True)
class IngestResult:
    tours: list[Tour]
    tasks: list[Task]
    records: list[MergedRecord]

    @property
    def matched_count(self) -> int:
        return sum(1 for record in self.records if record.tour is not None)


def ingest_grids(
    tours_grid: Grid,
    tasks_grid: Grid,
    *,
    backup_prefix: str | None = None,
    rollover_threshold: int | None = None,
    depot_prefixes: Mapping[str, Sequence[str]] | None = None,
) -> IngestResult:
    """Normalize both sheets, build records and join them.

    Fails fast with SchemaError on a missing mandatory header and with
    EmptyDatasetError when a sheet has no usable row; the tours sheet is
    fully validated before the tasks sheet is read.
    """
    backup_prefix = settings.backup_tour_prefix if backup_prefix is None else backup_prefix
    rollover_threshold = settings.rollover_threshold_seconds if rollover_threshold is None else rollover_threshold

    tours_sheet = normalize_grid(tours_grid, "tours")
    tours = build_tours(tours_sheet, backup_prefix=backup_prefix)
    if not tours:
        raise EmptyDatasetError("tours")

    tasks_sheet = normalize_grid(tasks_grid, "tasks")
    tasks = build_tasks(tasks_sheet, tour_start_times(tours), rollover_threshold=rollover_threshold)
    if not tasks:
        raise EmptyDatasetError("tasks")

    records = merge_records(tours, tasks, depot_prefixes=depot_prefixes)
    result = IngestResult(tours=tours, tasks=tasks, records=records)
    logging.info(
        f"Ingested {len(tours)} tours and {len(tasks)} tasks ({result.matched_count} matched to a tour)"
    )
    return result


def ingest_files(
    tours_payload: bytes,
    tours_filename: str,
    tasks_payload: bytes,
    tasks_filename: str,
    **options,
) -> IngestResult:
    """Decode two uploaded files and run :func:`ingest_grids` on them."""
    tours_grid = read_grid(tours_payload, tours_filename)
    tasks_grid = read_grid(tasks_payload, tasks_filename)
    return ingest_grids(tours_grid, tasks_grid, **options)
