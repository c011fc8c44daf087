"""Join tasks to their tours and derive per-tour aggregates."""

from __future__ import annotations

import logging
from typing import Mapping, Sequence

from ..data.depots import resolve_depot_name
from ..models.domain import MIDNIGHT, MergedRecord, Task, Tour


def merge_records(
    tours: Sequence[Tour],
    tasks: Sequence[Task],
    *,
    depot_prefixes: Mapping[str, Sequence[str]] | None = None,
) -> list[MergedRecord]:
    """Left outer join of tasks onto tours by composite key.

    Every task yields exactly one record, in input order; tasks whose tour is
    unknown keep ``tour=None``. Matched tours get their realized totals and
    durations recomputed from the joined tasks.
    """
    tour_map = {tour.unique_id: tour for tour in tours}
    merged = [
        MergedRecord(
            task=task,
            tour=tour_map.get(task.tour_key),
            order=index + 1,
            depot=resolve_depot_name(task.warehouse, depot_prefixes),
        )
        for index, task in enumerate(tasks)
    ]

    tasks_by_tour: dict[str, list[Task]] = {tour_id: [] for tour_id in tour_map}
    for record in merged:
        if record.tour is not None:
            tasks_by_tour[record.tour.unique_id].append(record.task)
    for tour_id, tour_tasks in tasks_by_tour.items():
        aggregate_tour(tour_map[tour_id], tour_tasks)

    matched = sum(1 for record in merged if record.tour is not None)
    if matched < len(merged):
        logging.warning(f"{len(merged) - matched} of {len(merged)} tasks have no matching tour")
    return merged


def aggregate_tour(tour: Tour, tasks: Sequence[Task]) -> Tour:
    """Attach realized totals and computed durations to a tour in place.

    Realized duration runs from the earliest realized arrival to the closure
    of the task that arrived last; the planned operational duration spans the
    predicted arrivals. Both are zero for a tour without tasks.
    """
    tour.realized_weight = sum(task.weight for task in tasks)
    tour.realized_bins = sum(task.items for task in tasks)

    if not tasks:
        tour.realized_duration = 0
        tour.planned_operational_duration = 0
        tour.first_planned_delivery = MIDNIGHT
        tour.last_planned_delivery = MIDNIGHT
        tour.first_realized_delivery = MIDNIGHT
        tour.last_realized_delivery = MIDNIGHT
        return tour

    planned = sorted(tasks, key=lambda task: task.predicted_arrival)
    realized = sorted(tasks, key=lambda task: task.realized_arrival)

    tour.first_planned_delivery = planned[0].predicted_arrival
    tour.last_planned_delivery = planned[-1].predicted_arrival
    tour.first_realized_delivery = realized[0].realized_arrival
    tour.last_realized_delivery = realized[-1].closure
    tour.planned_operational_duration = tour.last_planned_delivery - tour.first_planned_delivery
    tour.realized_duration = tour.last_realized_delivery - tour.first_realized_delivery
    return tour
