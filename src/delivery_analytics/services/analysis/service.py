"""Analysis orchestration: merged records and filters in, full report out."""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from ...config import settings
from ...models.domain import MergedRecord
from .anomalies import detect_capacity_overruns, detect_duration_discrepancies, detect_late_start_anomalies
from .depots import compute_depot_stats, compute_postal_code_stats
from .filters import FilterConfig, apply_filters, completed_records
from .kpis import discrepancy_kpis, general_kpis, global_summary, late_start_share, quality_kpis
from .models import AnalysisReport
from .performance import performance_by, performance_by_driver
from .punctuality import classify_records, punctuality_stats
from .simulation import DemandSimulator, RandomSource, actual_slot_distribution, customer_promise, saturation
from .temporal import (
    count_by,
    count_by_hour,
    delay_histogram,
    performance_by_day_of_week,
    performance_by_time_slot,
)
from .tours import group_by_tour
from .workload import workload_by_hour, workload_by_slot


def _distinct(values) -> list[str]:
    return sorted({value for value in values if value})


def analyze_records(
    records: Sequence[MergedRecord],
    filters: Optional[FilterConfig] = None,
    *,
    random_source: RandomSource = None,
) -> AnalysisReport:
    """Run every aggregation over the completed records passing ``filters``.

    Only tasks attached to a tour with a completed status are analysed. Tours
    are rebuilt from those tasks so realized totals and durations reflect the
    filtered scope; the ingested tours are left as they are. The simulated
    promise curve is the only stochastic output and depends on
    ``random_source``.
    """
    filters = filters or FilterConfig()
    tolerance = filters.punctuality_threshold

    scoped = apply_filters(completed_records(records), filters)
    classify_records(scoped, tolerance)
    groups, scoped = group_by_tour(scoped)
    tours = [group.tour for group in groups.values()]
    logging.info(f"Analysing {len(scoped)} completed tasks over {len(tours)} tours (tolerance {tolerance}s)")

    stats = punctuality_stats(scoped)
    late = [record for record in scoped if record.is_late]
    early = [record for record in scoped if record.is_early]

    overloaded = detect_capacity_overruns(
        tours,
        weight_ratio=settings.weight_overrun_ratio,
        duration_ratio=settings.duration_overrun_ratio,
    )
    late_starts = detect_late_start_anomalies(groups.values())
    quality, review_comparison = quality_kpis(scoped, overloaded, late_starts, len(tours))
    slots, average = workload_by_slot(scoped)
    simulator = DemandSimulator(
        random_source=random_source,
        start_hour=settings.simulation_start_hour,
        end_hour=settings.simulation_end_hour,
    )

    return AnalysisReport(
        tolerance=tolerance,
        general_kpis=general_kpis(scoped, tours, stats, tolerance),
        discrepancy_kpis=discrepancy_kpis(tours, stats),
        quality_kpis=quality,
        review_comparison=review_comparison,
        global_summary=global_summary(tours, stats),
        first_task_late_percentage=late_start_share(late_starts, len(tours)),
        overloaded_tours=overloaded,
        capacity_overruns=detect_capacity_overruns(tours, hard_capacity=True),
        duration_discrepancies=detect_duration_discrepancies(tours),
        late_start_anomalies=late_starts,
        performance_by_driver=performance_by_driver(groups.values()),
        performance_by_city=performance_by(scoped, "city"),
        performance_by_postal_code=performance_by(scoped, "postal_code"),
        performance_by_depot=performance_by(scoped, "depot"),
        performance_by_warehouse=performance_by(scoped, "warehouse"),
        delays_by_warehouse=count_by(late, lambda record: record.tour.warehouse),
        delays_by_city=count_by(late, lambda record: record.task.city),
        delays_by_postal_code=count_by(late, lambda record: record.task.postal_code),
        delays_by_hour=count_by_hour(late),
        advances_by_warehouse=count_by(early, lambda record: record.tour.warehouse),
        advances_by_city=count_by(early, lambda record: record.task.city),
        advances_by_postal_code=count_by(early, lambda record: record.task.postal_code),
        advances_by_hour=count_by_hour(early),
        performance_by_day_of_week=performance_by_day_of_week(scoped),
        performance_by_time_slot=performance_by_time_slot(scoped),
        delay_histogram=delay_histogram(scoped, tolerance),
        workload_by_hour=workload_by_hour(scoped),
        avg_workload_by_slot=slots,
        avg_workload=average,
        depot_stats=compute_depot_stats(groups.values(), tolerance, settings.late_tour_tolerance_minutes),
        postal_code_stats=compute_postal_code_stats(scoped),
        saturation=saturation(
            scoped, start_hour=settings.simulation_start_hour, end_hour=settings.simulation_end_hour
        ),
        customer_promise=customer_promise(
            scoped, start_hour=settings.simulation_start_hour, end_hour=settings.simulation_end_hour + 1
        ),
        actual_slot_distribution=actual_slot_distribution(scoped),
        simulated_promise=simulator.simulate(scoped),
        cities=_distinct(record.task.city for record in records),
        depots=_distinct(record.depot for record in records),
        warehouses=_distinct(record.task.warehouse for record in records),
    )
