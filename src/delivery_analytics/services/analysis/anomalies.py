"""Tour-level anomaly detection: capacity, duration and late starts."""

from __future__ import annotations

from typing import Iterable

from ...models.domain import Tour
from .models import DurationDiscrepancy, LateStartAnomaly, OverloadedTour
from .tours import TourGroup


def _overrun(realized: float, reference: float) -> tuple[float, float]:
    magnitude = realized - reference
    rate = magnitude / reference * 100 if reference > 0 else 0.0
    return magnitude, rate


def is_weight_overloaded(tour: Tour, *, hard_capacity: bool = False, weight_ratio: float = 1.1) -> bool:
    if hard_capacity:
        return tour.weight_capacity > 0 and tour.realized_weight > tour.weight_capacity
    return tour.planned_weight > 0 and tour.realized_weight > tour.planned_weight * weight_ratio


def is_bins_overloaded(tour: Tour, *, hard_capacity: bool = False) -> bool:
    reference = tour.bin_capacity if hard_capacity else tour.planned_bins
    return reference > 0 and tour.realized_bins > reference


def is_duration_overrun(tour: Tour, duration_ratio: float = 1.2) -> bool:
    return tour.planned_duration > 0 and tour.realized_duration > tour.planned_duration * duration_ratio


def detect_capacity_overruns(
    tours: Iterable[Tour],
    *,
    hard_capacity: bool = False,
    weight_ratio: float = 1.1,
    duration_ratio: float = 1.2,
) -> list[OverloadedTour]:
    """Tours whose realized load went past what was planned.

    By default a tour is flagged when its weight exceeds the planned weight by
    more than ``weight_ratio``, its bins exceed the planned bins, or its
    realized duration exceeds ``duration_ratio`` times the planned one. With
    ``hard_capacity`` the references are the vehicle weight and bin
    capacities instead, and duration is not considered.
    """
    flagged: list[OverloadedTour] = []
    for tour in tours:
        over_weight = is_weight_overloaded(tour, hard_capacity=hard_capacity, weight_ratio=weight_ratio)
        over_bins = is_bins_overloaded(tour, hard_capacity=hard_capacity)
        over_duration = not hard_capacity and is_duration_overrun(tour, duration_ratio)
        if not (over_weight or over_bins or over_duration):
            continue

        weight_reference = tour.weight_capacity if hard_capacity else tour.planned_weight
        bins_reference = tour.bin_capacity if hard_capacity else tour.planned_bins
        weight_overrun, weight_rate = _overrun(tour.realized_weight, weight_reference)
        bin_overrun, bin_rate = _overrun(tour.realized_bins, bins_reference)
        flagged.append(
            OverloadedTour(
                unique_id=tour.unique_id,
                name=tour.name,
                date=tour.date,
                warehouse=tour.warehouse,
                driver=tour.driver,
                realized_weight=tour.realized_weight,
                weight_reference=weight_reference,
                weight_overrun=weight_overrun,
                weight_overrun_rate=weight_rate,
                realized_bins=tour.realized_bins,
                bins_reference=bins_reference,
                bin_overrun=bin_overrun,
                bin_overrun_rate=bin_rate,
                over_weight=over_weight,
                over_bins=over_bins,
                over_duration=over_duration,
            )
        )

    flagged.sort(key=lambda item: (-item.weight_overrun_rate, -item.bin_overrun_rate))
    return flagged


def detect_duration_discrepancies(tours: Iterable[Tour]) -> list[DurationDiscrepancy]:
    """Tours that ran longer than their planned operational duration, longest gap first."""
    discrepancies = []
    for tour in tours:
        ecart = tour.realized_duration - tour.planned_operational_duration
        if ecart <= 0:
            continue
        discrepancies.append(
            DurationDiscrepancy(
                unique_id=tour.unique_id,
                name=tour.name,
                date=tour.date,
                warehouse=tour.warehouse,
                driver=tour.driver,
                planned_duration=tour.planned_operational_duration,
                realized_duration=tour.realized_duration,
                ecart=ecart,
                first_planned_delivery=int(tour.first_planned_delivery),
                first_realized_delivery=int(tour.first_realized_delivery),
                last_planned_delivery=int(tour.last_planned_delivery),
                last_realized_delivery=int(tour.last_realized_delivery),
            )
        )
    discrepancies.sort(key=lambda item: item.ecart, reverse=True)
    return discrepancies


def detect_late_start_anomalies(groups: Iterable[TourGroup]) -> list[LateStartAnomaly]:
    """Tours that left on time or early and still delivered late."""
    anomalies = []
    for group in groups:
        tour = group.tour
        if not tour.realized_departure or not tour.planned_departure:
            continue
        if tour.realized_departure > tour.planned_departure:
            continue
        late_tasks = group.late_count
        if not late_tasks:
            continue
        anomalies.append(
            LateStartAnomaly(
                unique_id=tour.unique_id,
                name=tour.name,
                date=tour.date,
                warehouse=tour.warehouse,
                driver=tour.driver,
                planned_departure=int(tour.planned_departure),
                realized_departure=int(tour.realized_departure),
                late_tasks=late_tasks,
            )
        )
    anomalies.sort(key=lambda item: item.late_tasks, reverse=True)
    return anomalies
