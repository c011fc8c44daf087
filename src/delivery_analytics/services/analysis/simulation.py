"""Delivery slot curves: observed promise vs execution, and a flexible-slot simulation."""

from __future__ import annotations

from typing import Optional, Sequence, Union

import numpy as np

from ...models.domain import MergedRecord
from .models import PromisePoint, SaturationPoint, SlotShare

RandomSource = Union[np.random.Generator, int, None]

MINUTES_PER_DAY = 24 * 60


def minute_label(minute: int) -> str:
    minute %= MINUTES_PER_DAY
    return f"{minute // 60:02d}:{minute % 60:02d}"


class _MinuteCurves:
    """Four per-minute series over ``[first_minute, last_minute)``."""

    def __init__(self, first_minute: int, last_minute: int) -> None:
        self.first = first_minute
        self.size = last_minute - first_minute
        self.promise = np.zeros(self.size)
        self.plan = np.zeros(self.size)
        self.realized = np.zeros(self.size)
        self.late = np.zeros(self.size)

    def index(self, minute: int) -> Optional[int]:
        position = minute - self.first
        if 0 <= position < self.size:
            return position
        return None

    def points(self) -> list[PromisePoint]:
        return [
            PromisePoint(
                minute=minute_label(self.first + position),
                customer_promise=float(self.promise[position]),
                plan=float(self.plan[position]),
                realized=float(self.realized[position]),
                late=float(self.late[position]),
            )
            for position in range(self.size)
        ]


class DemandSimulator:
    """Redistribute observed slot demand over overlapping two-hour windows.

    Windows open every ``step_minutes`` between ``start_hour`` and
    ``end_hour`` and their order counts are interpolated from the hourly
    distribution of promised slot starts, then scaled back to the real order
    total. Marking simulated volume as late draws from ``random_source``; pass
    a seed or a ``numpy.random.Generator`` for reproducible curves. The
    simulated curves are meant for visualisation, not for KPIs.
    """

    def __init__(
        self,
        *,
        random_source: RandomSource = None,
        start_hour: int = 6,
        end_hour: int = 22,
        window_minutes: int = 120,
        step_minutes: int = 30,
    ) -> None:
        if end_hour <= start_hour:
            raise ValueError("end_hour must be after start_hour")
        self.rng = np.random.default_rng(random_source)
        self.start_hour = start_hour
        self.end_hour = end_hour
        self.window_minutes = window_minutes
        self.step_minutes = step_minutes

    def hourly_distribution(self, records: Sequence[MergedRecord]) -> np.ndarray:
        """Order counts per promised slot start hour, ``start_hour`` to ``end_hour - 1``."""
        counts = np.zeros(self.end_hour - self.start_hour)
        for record in records:
            hour = record.task.slot_start.hour
            if self.start_hour <= hour < self.end_hour:
                counts[hour - self.start_hour] += 1
        return counts

    def window_starts(self) -> list[int]:
        return list(range(self.start_hour * 60, self.end_hour * 60, self.step_minutes))

    def window_counts(self, records: Sequence[MergedRecord]) -> dict[str, float]:
        """Expected orders per simulated window; sums to the number of records."""
        distribution = self.hourly_distribution(records)

        def hourly(hour: int) -> float:
            position = hour - self.start_hour
            if 0 <= position < len(distribution):
                return float(distribution[position])
            return 0.0

        starts = self.window_starts()
        counts = np.array(
            [
                hourly(start // 60) * (1 - (start % 60) / 60) + hourly(start // 60 + 1) * ((start % 60) / 60)
                for start in starts
            ]
        )
        total = counts.sum()
        if total > 0:
            counts *= len(records) / total
        return {
            f"{minute_label(start)}-{minute_label(start + self.window_minutes)}": float(count)
            for start, count in zip(starts, counts)
        }

    @staticmethod
    def offsets(records: Sequence[MergedRecord]) -> tuple[int, int, float]:
        """Mean plan offset and execution offset in whole minutes, plus the late share.

        The plan offset is predicted arrival minus promised slot start; the
        execution offset is closure minus predicted arrival.
        """
        if not records:
            return 0, 0, 0.0
        plan = sum(record.task.predicted_arrival - record.task.slot_start for record in records)
        realized = sum(record.task.closure - record.task.predicted_arrival for record in records)
        late = sum(1 for record in records if record.is_late)
        count = len(records)
        return round(plan / count / 60), round(realized / count / 60), late / count

    def simulate(self, records: Sequence[MergedRecord]) -> list[PromisePoint]:
        """Per-minute promise, plan, realized and late curves from 06:00 to 23:00 by default."""
        curves = _MinuteCurves(self.start_hour * 60, (self.end_hour + 1) * 60)
        if not records:
            return curves.points()

        plan_offset, realized_offset, late_probability = self.offsets(records)
        for start, orders in zip(self.window_starts(), self.window_counts(records).values()):
            per_minute = orders / self.window_minutes
            draws = self.rng.random(self.window_minutes)
            for step in range(self.window_minutes):
                minute = start + step
                position = curves.index(minute)
                if position is None:
                    continue
                curves.promise[position] += per_minute
                plan_position = curves.index(minute + plan_offset)
                if plan_position is not None:
                    curves.plan[plan_position] += per_minute
                realized_position = curves.index(minute + plan_offset + realized_offset)
                if realized_position is not None:
                    curves.realized[realized_position] += per_minute
                    if draws[step] < late_probability:
                        curves.late[realized_position] += per_minute
        return curves.points()


def customer_promise(
    records: Sequence[MergedRecord],
    *,
    start_hour: int = 6,
    end_hour: int = 23,
) -> list[PromisePoint]:
    """Observed per-minute curves: promised slots, predicted arrivals and closures.

    Each distinct slot spreads its order count evenly over its minutes.
    Predicted arrivals feed the plan curve, closures the realized curve, and
    closures of late tasks the late curve.
    """
    curves = _MinuteCurves(start_hour * 60, end_hour * 60)

    slots: dict[tuple[int, int], int] = {}
    for record in records:
        key = (record.task.slot_start.seconds, record.task.slot_end.seconds)
        slots[key] = slots.get(key, 0) + 1

    for (slot_start, slot_end), count in slots.items():
        duration = (slot_end - slot_start) // 60
        if duration <= 0:
            continue
        per_minute = count / duration
        first_minute = slot_start // 60
        for step in range(duration):
            position = curves.index((first_minute + step) % MINUTES_PER_DAY)
            if position is not None:
                curves.promise[position] += per_minute

    for record in records:
        plan_position = curves.index(record.task.predicted_arrival.minute_of_day)
        if plan_position is not None:
            curves.plan[plan_position] += 1
        closure_position = curves.index(record.task.closure.minute_of_day)
        if closure_position is not None:
            curves.realized[closure_position] += 1
            if record.is_late:
                curves.late[closure_position] += 1
    return curves.points()


def saturation(
    records: Sequence[MergedRecord],
    *,
    start_hour: int = 6,
    end_hour: int = 22,
) -> list[SaturationPoint]:
    """Hourly demand (open slots) against capacity (closures); idle hours are omitted."""
    hours = range(start_hour, end_hour + 1)
    demand = {hour: 0 for hour in hours}
    capacity = {hour: 0 for hour in hours}
    for record in records:
        task = record.task
        for hour in range(task.slot_start.hour, task.slot_end.hour):
            if hour in demand:
                demand[hour] += 1
        if task.closure.hour in capacity:
            capacity[task.closure.hour] += 1

    return [
        SaturationPoint(
            hour=f"{hour:02d}:00",
            demand=demand[hour],
            capacity=capacity[hour],
            gap=demand[hour] - capacity[hour],
        )
        for hour in hours
        if demand[hour] or capacity[hour]
    ]


def actual_slot_distribution(records: Sequence[MergedRecord]) -> list[SlotShare]:
    """Share of orders per promised slot within each warehouse."""
    by_warehouse: dict[str, dict[str, int]] = {}
    for record in records:
        if record.tour is None or not record.tour.warehouse:
            continue
        slots = by_warehouse.setdefault(record.tour.warehouse, {})
        key = f"{record.task.slot_start.format()}-{record.task.slot_end.format()}"
        slots[key] = slots.get(key, 0) + 1

    shares = []
    for warehouse, slots in by_warehouse.items():
        total = sum(slots.values())
        for slot in sorted(slots):
            shares.append(
                SlotShare(
                    warehouse=warehouse,
                    slot=slot,
                    count=slots[slot],
                    percentage=slots[slot] / total * 100,
                )
            )
    return shares
