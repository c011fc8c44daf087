"""Analysis result entries."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional


@dataclass(slots=True)
class Kpi:
    title: str
    value: Optional[str]
    description: Optional[str] = None
    icon: Optional[str] = None


@dataclass(slots=True)
class ComparisonKpi:
    title: str
    value1: str
    label1: str
    value2: str
    label2: str
    change: str
    change_type: str


@dataclass(slots=True)
class GlobalSummary:
    punctuality_rate_planned: float = 0.0
    punctuality_rate_realized: float = 0.0
    avg_duration_discrepancy_per_tour: float = 0.0
    avg_weight_discrepancy_per_tour: float = 0.0
    weight_overrun_rate: float = 0.0
    duration_overrun_rate: float = 0.0


@dataclass(slots=True)
class OverloadedTour:
    unique_id: str
    name: str
    date: str
    warehouse: str
    driver: Optional[str]
    realized_weight: float
    weight_reference: float
    weight_overrun: float
    weight_overrun_rate: float
    realized_bins: float
    bins_reference: float
    bin_overrun: float
    bin_overrun_rate: float
    over_weight: bool
    over_bins: bool
    over_duration: bool = False


@dataclass(slots=True)
class DurationDiscrepancy:
    unique_id: str
    name: str
    date: str
    warehouse: str
    driver: Optional[str]
    planned_duration: int
    realized_duration: int
    ecart: int
    first_planned_delivery: int
    first_realized_delivery: int
    last_planned_delivery: int
    last_realized_delivery: int


@dataclass(slots=True)
class LateStartAnomaly:
    unique_id: str
    name: str
    date: str
    warehouse: str
    driver: Optional[str]
    planned_departure: int
    realized_departure: int
    late_tasks: int


@dataclass(slots=True)
class DriverPerformance:
    key: str
    total_tours: int
    punctuality_rate: float
    avg_delay_minutes: float
    overweight_tours: int
    avg_rating: Optional[float] = None


@dataclass(slots=True)
class GroupPerformance:
    key: str
    total_tasks: int
    punctuality_rate_planned: float
    punctuality_rate_realized: float
    avg_duration_discrepancy: float
    avg_weight_discrepancy: float
    late_with_bad_review_rate: float


@dataclass(slots=True)
class KeyCount:
    key: str
    count: int


@dataclass(slots=True)
class PeriodPerformance:
    key: str
    total_tasks: int
    punctuality_rate: float
    avg_delay_minutes: float
    delays: int
    advances: int


@dataclass(slots=True)
class HistogramBin:
    label: str
    count: int


@dataclass(slots=True)
class HourlyWorkload:
    hour: str
    planned: int = 0
    real: int = 0
    delays: int = 0
    advances: int = 0
    active_drivers: int = 0


@dataclass(slots=True)
class SlotWorkload:
    slot: str
    avg_planned: float
    avg_real: float


@dataclass(slots=True)
class AverageWorkload:
    avg_planned: float = 0.0
    avg_real: float = 0.0


@dataclass(slots=True)
class DepotStats:
    warehouse: str
    planned_punctuality: float
    realized_punctuality: float
    on_time_departure_late_first_task_rate: float
    on_time_departure_accumulated_delay_rate: float
    negative_ratings_late_rate: float
    weight_overrun_rate: float
    most_chosen_slot: Optional[str]
    most_chosen_slot_rate: float
    latest_slot: Optional[str]
    latest_slot_late_rate: float
    planned_work_intensity: float
    realized_work_intensity: float
    most_intense_slot: Optional[str]
    least_intense_slot: Optional[str]


@dataclass(slots=True)
class PostalCodeStats:
    postal_code: str
    warehouse: str
    total_deliveries: int
    late_rate: float


@dataclass(slots=True)
class SaturationPoint:
    hour: str
    demand: int
    capacity: int
    gap: int


@dataclass(slots=True)
class PromisePoint:
    minute: str
    customer_promise: float = 0.0
    plan: float = 0.0
    realized: float = 0.0
    late: float = 0.0


@dataclass(slots=True)
class SlotShare:
    warehouse: str
    slot: str
    count: int
    percentage: float


@dataclass(slots=True)
class AnalysisReport:
    """Everything computed for one set of filters."""

    tolerance: int
    general_kpis: list[Kpi] = field(default_factory=list)
    discrepancy_kpis: list[ComparisonKpi] = field(default_factory=list)
    quality_kpis: list[Kpi] = field(default_factory=list)
    review_comparison: Optional[ComparisonKpi] = None
    global_summary: GlobalSummary = field(default_factory=GlobalSummary)
    first_task_late_percentage: float = 0.0
    overloaded_tours: list[OverloadedTour] = field(default_factory=list)
    capacity_overruns: list[OverloadedTour] = field(default_factory=list)
    duration_discrepancies: list[DurationDiscrepancy] = field(default_factory=list)
    late_start_anomalies: list[LateStartAnomaly] = field(default_factory=list)
    performance_by_driver: list[DriverPerformance] = field(default_factory=list)
    performance_by_city: list[GroupPerformance] = field(default_factory=list)
    performance_by_postal_code: list[GroupPerformance] = field(default_factory=list)
    performance_by_depot: list[GroupPerformance] = field(default_factory=list)
    performance_by_warehouse: list[GroupPerformance] = field(default_factory=list)
    delays_by_warehouse: list[KeyCount] = field(default_factory=list)
    delays_by_city: list[KeyCount] = field(default_factory=list)
    delays_by_postal_code: list[KeyCount] = field(default_factory=list)
    delays_by_hour: list[KeyCount] = field(default_factory=list)
    advances_by_warehouse: list[KeyCount] = field(default_factory=list)
    advances_by_city: list[KeyCount] = field(default_factory=list)
    advances_by_postal_code: list[KeyCount] = field(default_factory=list)
    advances_by_hour: list[KeyCount] = field(default_factory=list)
    performance_by_day_of_week: list[PeriodPerformance] = field(default_factory=list)
    performance_by_time_slot: list[PeriodPerformance] = field(default_factory=list)
    delay_histogram: list[HistogramBin] = field(default_factory=list)
    workload_by_hour: list[HourlyWorkload] = field(default_factory=list)
    avg_workload_by_slot: list[SlotWorkload] = field(default_factory=list)
    avg_workload: AverageWorkload = field(default_factory=AverageWorkload)
    depot_stats: list[DepotStats] = field(default_factory=list)
    postal_code_stats: list[PostalCodeStats] = field(default_factory=list)
    saturation: list[SaturationPoint] = field(default_factory=list)
    customer_promise: list[PromisePoint] = field(default_factory=list)
    actual_slot_distribution: list[SlotShare] = field(default_factory=list)
    simulated_promise: list[PromisePoint] = field(default_factory=list)
    cities: list[str] = field(default_factory=list)
    depots: list[str] = field(default_factory=list)
    warehouses: list[str] = field(default_factory=list)
