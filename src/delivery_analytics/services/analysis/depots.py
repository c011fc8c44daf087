"""Per-warehouse and per-postal-code operational statistics."""

from __future__ import annotations

from typing import Iterable, Optional, Sequence

from ...models.domain import DelayStatus, MergedRecord, Task
from .anomalies import is_weight_overloaded
from .models import DepotStats, PostalCodeStats
from .punctuality import punctuality_rate
from .tours import TourGroup

INTENSITY_START_HOUR = 6
INTENSITY_END_HOUR = 22


def slot_key(task: Task) -> str:
    return f"{task.slot_start.format()}-{task.slot_end.format()}"


def _rate(part: int, whole: int) -> float:
    return part / whole * 100 if whole else 0.0


def _left_on_time(group: TourGroup) -> bool:
    return group.tour.realized_departure <= group.tour.planned_departure


def _first_task_late(group: TourGroup, late_tour_tolerance_minutes: float) -> bool:
    first = min(group.records, key=lambda record: record.order)
    return first.task.retard / 60 > late_tour_tolerance_minutes


def _closed_after_slot(group: TourGroup, tolerance: int) -> bool:
    return any(record.task.closure - record.task.slot_end > tolerance for record in group.records)


def _slot_preferences(records: Sequence[MergedRecord]) -> tuple[Optional[str], float, Optional[str], float]:
    totals: dict[str, int] = {}
    late: dict[str, int] = {}
    for record in records:
        key = slot_key(record.task)
        totals[key] = totals.get(key, 0) + 1
        if record.is_late:
            late[key] = late.get(key, 0) + 1

    most_chosen = max(totals, key=totals.__getitem__) if totals else None
    most_chosen_rate = _rate(totals[most_chosen], len(records)) if most_chosen else 0.0
    latest = max(late, key=late.__getitem__) if late else None
    latest_rate = _rate(late[latest], totals[latest]) if latest else 0.0
    return most_chosen, most_chosen_rate, latest, latest_rate


def _work_intensity(records: Sequence[MergedRecord]) -> tuple[float, float, Optional[str], Optional[str]]:
    """Average tasks per active tour over the 06h-22h two-hour slots that saw any work."""
    starts = range(INTENSITY_START_HOUR, INTENSITY_END_HOUR, 2)
    planned = {start: 0 for start in starts}
    real = {start: 0 for start in starts}
    planned_tours: dict[int, set[str]] = {start: set() for start in starts}
    real_tours: dict[int, set[str]] = {start: set() for start in starts}

    for record in records:
        task = record.task
        real_start = task.closure.hour // 2 * 2
        if real_start in real:
            real[real_start] += 1
            real_tours[real_start].add(task.tour_key)
        planned_start = task.predicted_arrival.hour // 2 * 2
        if planned_start in planned:
            planned[planned_start] += 1
            planned_tours[planned_start].add(task.tour_key)

    intensities = []
    for start in starts:
        avg_planned = planned[start] / len(planned_tours[start]) if planned_tours[start] else 0.0
        avg_real = real[start] / len(real_tours[start]) if real_tours[start] else 0.0
        if avg_planned > 0 or avg_real > 0:
            intensities.append((f"{start:02d}h-{start + 2:02d}h", avg_planned, avg_real))

    if not intensities:
        return 0.0, 0.0, None, None
    planned_intensity = sum(item[1] for item in intensities) / len(intensities)
    realized_intensity = sum(item[2] for item in intensities) / len(intensities)
    most = max(intensities, key=lambda item: item[2])[0]
    least = min(intensities, key=lambda item: item[2])[0]
    return planned_intensity, realized_intensity, most, least


def compute_depot_stats(
    groups: Iterable[TourGroup],
    tolerance: int,
    late_tour_tolerance_minutes: float,
) -> list[DepotStats]:
    """One row per warehouse, in order of first appearance.

    Weight overrun here compares the realized load against the vehicle weight
    capacity, not against the planned weight.
    """
    by_warehouse: dict[str, list[TourGroup]] = {}
    for group in groups:
        if group.records:
            by_warehouse.setdefault(group.tour.warehouse, []).append(group)

    rows = []
    for warehouse, tours in by_warehouse.items():
        records = [record for group in tours for record in group.records]
        total = len(records)
        planned_on_time = sum(1 for record in records if record.task.predicted_delay_status is DelayStatus.ON_TIME)
        realized_on_time = sum(1 for record in records if record.is_on_time)

        on_time_departures = [group for group in tours if _left_on_time(group)]
        late_first = sum(1 for group in on_time_departures if _first_task_late(group, late_tour_tolerance_minutes))
        accumulated = sum(1 for group in on_time_departures if _closed_after_slot(group, tolerance))

        negative = [record for record in records if record.task.rating is not None and 1 <= record.task.rating <= 3]
        negative_late = sum(1 for record in negative if record.is_late)

        overweight = sum(1 for group in tours if is_weight_overloaded(group.tour, hard_capacity=True))

        most_chosen, most_chosen_rate, latest, latest_rate = _slot_preferences(records)
        planned_intensity, realized_intensity, most_intense, least_intense = _work_intensity(records)

        rows.append(
            DepotStats(
                warehouse=warehouse,
                planned_punctuality=punctuality_rate(planned_on_time, total),
                realized_punctuality=punctuality_rate(realized_on_time, total),
                on_time_departure_late_first_task_rate=_rate(late_first, len(tours)),
                on_time_departure_accumulated_delay_rate=_rate(accumulated, len(tours)),
                negative_ratings_late_rate=_rate(negative_late, len(negative)),
                weight_overrun_rate=_rate(overweight, len(tours)),
                most_chosen_slot=most_chosen,
                most_chosen_slot_rate=most_chosen_rate,
                latest_slot=latest,
                latest_slot_late_rate=latest_rate,
                planned_work_intensity=planned_intensity,
                realized_work_intensity=realized_intensity,
                most_intense_slot=most_intense,
                least_intense_slot=least_intense,
            )
        )
    return rows


def compute_postal_code_stats(records: Iterable[MergedRecord]) -> list[PostalCodeStats]:
    """Deliveries and late share per postal code, worst first."""
    totals: dict[str, list[int]] = {}
    owners: dict[str, str] = {}
    for record in records:
        code = record.task.postal_code
        if not code or record.tour is None:
            continue
        if code not in totals:
            totals[code] = [0, 0]
            owners[code] = record.tour.warehouse
        totals[code][0] += 1
        if record.is_late:
            totals[code][1] += 1

    rows = [
        PostalCodeStats(
            postal_code=code,
            warehouse=owners[code],
            total_deliveries=count,
            late_rate=_rate(late, count),
        )
        for code, (count, late) in totals.items()
    ]
    rows.sort(key=lambda row: row.late_rate, reverse=True)
    return rows
