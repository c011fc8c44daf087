"""Build canonical Tour and Task records from normalized sheet rows."""

from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping

from ..models.domain import MIDNIGHT, Task, TimeOfDay, Tour
from .normalizer import NormalizedSheet
from .time_codec import DEFAULT_ROLLOVER_THRESHOLD, apply_overnight_rollover


def make_tour_key(name: Any, date: Any, warehouse: Any) -> str:
    return f"{name}|{date}|{warehouse}"


def _text(row: Mapping[str, Any], key: str) -> str:
    value = row.get(key)
    return "" if value is None else str(value)


def _optional_text(row: Mapping[str, Any], key: str) -> str | None:
    value = row.get(key)
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _number(row: Mapping[str, Any], key: str) -> float:
    value = row.get(key)
    return float(value) if isinstance(value, (int, float)) else 0.0


def _time(row: Mapping[str, Any], key: str) -> TimeOfDay:
    value = row.get(key)
    return value if isinstance(value, TimeOfDay) else MIDNIGHT


def is_backup_tour(name: str, prefix: str = "R") -> bool:
    return bool(prefix) and name.upper().startswith(prefix.upper())


def tour_start_time(row: Mapping[str, Any]) -> TimeOfDay:
    """Realized departure, else the "started" stamp, else the planned departure."""
    for key in ("realized_departure", "started", "planned_departure"):
        candidate = _time(row, key)
        if candidate:
            return candidate
    return MIDNIGHT


def build_tours(sheet: NormalizedSheet, *, backup_prefix: str = "R") -> list[Tour]:
    tours: list[Tour] = []
    skipped_backup = 0
    for row in sheet.rows:
        name = _text(row, "name").strip()
        if is_backup_tour(name, backup_prefix):
            skipped_backup += 1
            continue
        date = _text(row, "date")
        warehouse = _text(row, "warehouse").strip()
        tours.append(
            Tour(
                unique_id=make_tour_key(name, date, warehouse),
                name=name,
                date=date,
                warehouse=warehouse,
                driver=_optional_text(row, "driver"),
                planned_distance=_number(row, "planned_distance"),
                realized_distance=_number(row, "realized_distance"),
                planned_duration=_number(row, "planned_duration"),
                reported_duration=_number(row, "reported_duration"),
                planned_departure=_time(row, "planned_departure"),
                planned_end=_time(row, "planned_end"),
                realized_departure=tour_start_time(row),
                started=_time(row, "started"),
                finished=_time(row, "finished"),
                bin_capacity=_number(row, "bin_capacity"),
                planned_bins=_number(row, "planned_bins"),
                weight_capacity=_number(row, "weight_capacity"),
                planned_weight=_number(row, "planned_weight"),
                preparation_time=_number(row, "preparation_time"),
                service_time=_number(row, "service_time"),
                travel_time=_number(row, "travel_time"),
                majority_postal_code=_text(row, "majority_postal_code"),
            )
        )
    if skipped_backup:
        logging.info(f"Skipped {skipped_backup} backup tours")
    return tours


def tour_start_times(tours: Iterable[Tour]) -> dict[str, TimeOfDay]:
    """Start time per tour key; a later duplicate key overrides an earlier one."""
    return {tour.unique_id: tour.realized_departure for tour in tours}


def build_tasks(
    sheet: NormalizedSheet,
    start_times: Mapping[str, TimeOfDay] | None = None,
    *,
    rollover_threshold: int = DEFAULT_ROLLOVER_THRESHOLD,
) -> list[Task]:
    start_times = start_times or {}
    has_closure = "closure" in sheet.columns
    rolled_over = 0

    tasks: list[Task] = []
    for row in sheet.rows:
        tour_name = _text(row, "tour_name").strip()
        date = _text(row, "date")
        warehouse = _text(row, "warehouse").strip()
        key = make_tour_key(tour_name, date, warehouse)

        closure = _time(row, "closure")
        realized_arrival = _time(row, "realized_arrival")
        if not realized_arrival and has_closure:
            realized_arrival = closure

        tour_start = start_times.get(key, MIDNIGHT)
        corrected = apply_overnight_rollover(closure, realized_arrival, tour_start, rollover_threshold)
        if corrected[0] != closure:
            rolled_over += 1
        closure, realized_arrival = corrected

        tasks.append(
            Task(
                tour_key=key,
                tour_name=tour_name,
                date=date,
                warehouse=warehouse,
                driver=_optional_text(row, "driver"),
                sequence=_number(row, "sequence"),
                status=_text(row, "status").strip(),
                completed_by=_optional_text(row, "completed_by"),
                weight=_number(row, "weight"),
                items=_number(row, "items"),
                slot_start=_time(row, "slot_start"),
                slot_end=_time(row, "slot_end"),
                predicted_arrival=_time(row, "predicted_arrival"),
                realized_arrival=realized_arrival,
                closure=closure,
                service_time=_number(row, "service_time"),
                realized_service_time=_number(row, "realized_service_time"),
                retard=_number(row, "retard"),
                city=_text(row, "city").strip(),
                postal_code=_text(row, "postal_code").strip(),
                rating=row.get("rating"),
                comment=_optional_text(row, "comment"),
            )
        )
    if rolled_over:
        logging.info(f"Moved {rolled_over} task closures past midnight onto the next day")
    return tasks
