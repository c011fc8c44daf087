"""Performance tables per driver, per geography and per warehouse group."""

from __future__ import annotations

from typing import Callable, Iterable, Mapping, Optional, Sequence

from ...data.depots import depot_prefix
from ...models.domain import DelayStatus, MergedRecord
from .models import DriverPerformance, GroupPerformance
from .punctuality import punctuality_rate
from .tours import TourGroup


def performance_by_driver(groups: Iterable[TourGroup]) -> list[DriverPerformance]:
    """One row per driver, busiest first. Tours without a driver are skipped."""
    drivers: dict[str, list[TourGroup]] = {}
    for group in groups:
        if not group.tour.driver:
            continue
        drivers.setdefault(group.tour.driver, []).append(group)

    rows = []
    for driver, tours in drivers.items():
        records = [record for group in tours for record in group.records]
        on_time = sum(1 for record in records if record.is_on_time)
        late = [record.task.retard for record in records if record.is_late]
        ratings = [record.task.rating for record in records if record.task.rating is not None]
        overweight = {
            group.tour.unique_id
            for group in tours
            if group.tour.planned_weight > 0 and group.tour.realized_weight > group.tour.planned_weight
        }
        rows.append(
            DriverPerformance(
                key=driver,
                total_tours=len(tours),
                punctuality_rate=punctuality_rate(on_time, len(records)),
                avg_delay_minutes=sum(late) / len(late) / 60 if late else 0.0,
                overweight_tours=len(overweight),
                avg_rating=sum(ratings) / len(ratings) if ratings else None,
            )
        )
    rows.sort(key=lambda row: row.total_tours, reverse=True)
    return rows


def performance_by_group(
    records: Sequence[MergedRecord],
    key: Callable[[MergedRecord], Optional[str]],
) -> list[GroupPerformance]:
    """Planned vs realized punctuality for any record grouping.

    Duration and weight discrepancies are averaged over the distinct tours
    touching the group. Rows are ordered by the drop from planned to realized
    punctuality, largest first.
    """
    buckets: dict[str, list[MergedRecord]] = {}
    for record in records:
        if record.tour is None:
            continue
        value = key(record)
        if not value:
            continue
        buckets.setdefault(value, []).append(record)

    rows = []
    for value, members in buckets.items():
        total = len(members)
        on_time = sum(1 for record in members if record.is_on_time)
        planned_on_time = sum(
            1 for record in members if record.task.predicted_delay_status is DelayStatus.ON_TIME
        )
        late = [record for record in members if record.is_late]
        late_bad = sum(1 for record in late if record.has_bad_review)

        tours = {record.tour.unique_id: record.tour for record in members}
        duration_gap = sum(tour.realized_duration - tour.planned_operational_duration for tour in tours.values())
        weight_gap = sum(tour.realized_weight - tour.planned_weight for tour in tours.values())

        rows.append(
            GroupPerformance(
                key=value,
                total_tasks=total,
                punctuality_rate_planned=punctuality_rate(planned_on_time, total),
                punctuality_rate_realized=punctuality_rate(on_time, total),
                avg_duration_discrepancy=duration_gap / len(tours),
                avg_weight_discrepancy=weight_gap / len(tours),
                late_with_bad_review_rate=late_bad / len(late) * 100 if late else 0.0,
            )
        )
    rows.sort(key=lambda row: row.punctuality_rate_planned - row.punctuality_rate_realized, reverse=True)
    return rows


GROUP_KEYS: Mapping[str, Callable[[MergedRecord], Optional[str]]] = {
    "city": lambda record: record.task.city,
    "postal_code": lambda record: record.task.postal_code,
    "depot": lambda record: depot_prefix(record.task.warehouse),
    "warehouse": lambda record: record.task.warehouse,
}


def performance_by(records: Sequence[MergedRecord], dimension: str) -> list[GroupPerformance]:
    try:
        key = GROUP_KEYS[dimension]
    except KeyError as exc:
        raise ValueError(f"Unknown grouping '{dimension}'") from exc
    return performance_by_group(records, key)
