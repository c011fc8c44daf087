"""Three-way punctuality classification of delivery tasks."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Sequence

from ...models.domain import DelayStatus, MergedRecord, Task


def classify_delay(delay: float, tolerance: float) -> DelayStatus:
    """Late above the window, early below it, on time inside it (bounds included)."""
    if delay > tolerance:
        return DelayStatus.LATE
    if delay < -tolerance:
        return DelayStatus.EARLY
    return DelayStatus.ON_TIME


def predicted_delay(task: Task) -> int:
    """Signed distance from the predicted arrival to the promised slot.

    Zero inside ``[slot_start, slot_end]``; otherwise measured against the
    nearer boundary, positive after the slot and negative before it.
    """
    arrival = task.predicted_arrival
    if arrival < task.slot_start:
        return arrival - task.slot_start
    if arrival > task.slot_end:
        return arrival - task.slot_end
    return 0


def classify_task(task: Task, tolerance: float) -> Task:
    task.delay_status = classify_delay(task.retard, tolerance)
    task.predicted_delay = predicted_delay(task)
    task.predicted_delay_status = classify_delay(task.predicted_delay, tolerance)
    return task


def classify_records(records: Iterable[MergedRecord], tolerance: float) -> list[MergedRecord]:
    """Classify every record in place and return them as a list.

    Running it again with the same tolerance leaves every field unchanged.
    """
    classified = []
    for record in records:
        classify_task(record.task, tolerance)
        classified.append(record)
    return classified


@dataclass(slots=True)
class PunctualityStats:
    total: int = 0
    late: int = 0
    early: int = 0
    predicted_late: int = 0
    predicted_early: int = 0

    @property
    def out_of_time(self) -> int:
        return self.late + self.early

    @property
    def predicted_out_of_time(self) -> int:
        return self.predicted_late + self.predicted_early

    @property
    def realized_rate(self) -> float:
        return punctuality_rate(self.total - self.out_of_time, self.total)

    @property
    def planned_rate(self) -> float:
        return punctuality_rate(self.total - self.predicted_out_of_time, self.total)


def punctuality_rate(on_time: int, total: int) -> float:
    """Percentage of on-time tasks; 100 when there is nothing to be late about."""
    if total <= 0:
        return 100.0
    return on_time / total * 100


def punctuality_stats(records: Sequence[MergedRecord]) -> PunctualityStats:
    stats = PunctualityStats(total=len(records))
    for record in records:
        task = record.task
        if task.delay_status is DelayStatus.LATE:
            stats.late += 1
        elif task.delay_status is DelayStatus.EARLY:
            stats.early += 1
        if task.predicted_delay_status is DelayStatus.LATE:
            stats.predicted_late += 1
        elif task.predicted_delay_status is DelayStatus.EARLY:
            stats.predicted_early += 1
    return stats
