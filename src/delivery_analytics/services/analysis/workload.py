"""Hourly and two-hourly workload of the delivery fleet."""

from __future__ import annotations

from typing import Sequence

from ...models.domain import MergedRecord
from .models import AverageWorkload, HourlyWorkload, SlotWorkload


def _active_key(record: MergedRecord) -> str:
    if record.tour is not None and record.tour.driver:
        return record.tour.driver
    return record.task.tour_key


def workload_by_hour(records: Sequence[MergedRecord]) -> list[HourlyWorkload]:
    """24 rows: planned by predicted-arrival hour, real by closure hour.

    Delays and advances are placed on the realized-arrival hour. Active
    drivers are the distinct drivers closing a task during the hour.
    """
    rows = [HourlyWorkload(hour=f"{hour:02d}:00") for hour in range(24)]
    active: list[set[str]] = [set() for _ in range(24)]
    for record in records:
        task = record.task
        rows[task.predicted_arrival.hour].planned += 1
        rows[task.closure.hour].real += 1
        active[task.closure.hour].add(_active_key(record))
        if record.is_late:
            rows[task.realized_arrival.hour].delays += 1
        elif record.is_early:
            rows[task.realized_arrival.hour].advances += 1
    for row, drivers in zip(rows, active):
        row.active_drivers = len(drivers)
    return rows


def slot_label(start_hour: int, width: int = 2) -> str:
    return f"{start_hour:02d}h-{start_hour + width:02d}h"


def workload_by_slot(records: Sequence[MergedRecord]) -> tuple[list[SlotWorkload], AverageWorkload]:
    """Average tasks per active tour in each two-hour slot of the day.

    A tour is active in a slot when one of its tasks falls in it (predicted
    arrival for the planned side, realized arrival for the real side). The
    overall averages only count slots with some activity.
    """
    planned = [0] * 12
    real = [0] * 12
    planned_tours: list[set[str]] = [set() for _ in range(12)]
    real_tours: list[set[str]] = [set() for _ in range(12)]
    for record in records:
        task = record.task
        real_index = task.realized_arrival.hour // 2
        real[real_index] += 1
        real_tours[real_index].add(task.tour_key)
        planned_index = task.predicted_arrival.hour // 2
        planned[planned_index] += 1
        planned_tours[planned_index].add(task.tour_key)

    slots = [
        SlotWorkload(
            slot=slot_label(index * 2),
            avg_planned=planned[index] / len(planned_tours[index]) if planned_tours[index] else 0.0,
            avg_real=real[index] / len(real_tours[index]) if real_tours[index] else 0.0,
        )
        for index in range(12)
    ]

    busy_planned = [slot.avg_planned for slot in slots if slot.avg_planned > 0]
    busy_real = [slot.avg_real for slot in slots if slot.avg_real > 0]
    average = AverageWorkload(
        avg_planned=sum(busy_planned) / len(busy_planned) if busy_planned else 0.0,
        avg_real=sum(busy_real) / len(busy_real) if busy_real else 0.0,
    )
    return slots, average
