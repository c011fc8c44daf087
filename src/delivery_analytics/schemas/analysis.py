"""Pydantic request/response models for analysis endpoints."""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, Field

from ..services.analysis.filters import FilterConfig
from .ingest import CamelModel


class AnalysisRequest(BaseModel):
    tours: list[list[Any]] = Field(..., description="Tours sheet: header row followed by data rows.")
    tasks: list[list[Any]] = Field(..., description="Tasks sheet: header row followed by data rows.")
    filters: FilterConfig = Field(default_factory=FilterConfig)
    seed: Optional[int] = Field(default=None, description="Seed for the simulated late-delivery marking.")


class KpiModel(CamelModel):
    title: str
    value: Optional[str] = None
    description: Optional[str] = None
    icon: Optional[str] = None


class ComparisonKpiModel(CamelModel):
    title: str
    value1: str
    label1: str
    value2: str
    label2: str
    change: str
    change_type: str


class GlobalSummaryModel(CamelModel):
    punctuality_rate_planned: float
    punctuality_rate_realized: float
    avg_duration_discrepancy_per_tour: float
    avg_weight_discrepancy_per_tour: float
    weight_overrun_rate: float
    duration_overrun_rate: float


class OverloadedTourModel(CamelModel):
    unique_id: str
    name: str
    date: str
    warehouse: str
    driver: Optional[str] = None
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
    over_duration: bool


class DurationDiscrepancyModel(CamelModel):
    unique_id: str
    name: str
    date: str
    warehouse: str
    driver: Optional[str] = None
    planned_duration: int
    realized_duration: int
    ecart: int
    first_planned_delivery: int
    first_realized_delivery: int
    last_planned_delivery: int
    last_realized_delivery: int


class LateStartAnomalyModel(CamelModel):
    unique_id: str
    name: str
    date: str
    warehouse: str
    driver: Optional[str] = None
    planned_departure: int
    realized_departure: int
    late_tasks: int


class DriverPerformanceModel(CamelModel):
    key: str
    total_tours: int
    punctuality_rate: float
    avg_delay_minutes: float
    overweight_tours: int
    avg_rating: Optional[float] = None


class GroupPerformanceModel(CamelModel):
    key: str
    total_tasks: int
    punctuality_rate_planned: float
    punctuality_rate_realized: float
    avg_duration_discrepancy: float
    avg_weight_discrepancy: float
    late_with_bad_review_rate: float


class KeyCountModel(CamelModel):
    key: str
    count: int


class PeriodPerformanceModel(CamelModel):
    key: str
    total_tasks: int
    punctuality_rate: float
    avg_delay_minutes: float
    delays: int
    advances: int


class HistogramBinModel(CamelModel):
    label: str
    count: int


class HourlyWorkloadModel(CamelModel):
    hour: str
    planned: int
    real: int
    delays: int
    advances: int
    active_drivers: int


class SlotWorkloadModel(CamelModel):
    slot: str
    avg_planned: float
    avg_real: float


class AverageWorkloadModel(CamelModel):
    avg_planned: float
    avg_real: float


class DepotStatsModel(CamelModel):
    warehouse: str
    planned_punctuality: float
    realized_punctuality: float
    on_time_departure_late_first_task_rate: float
    on_time_departure_accumulated_delay_rate: float
    negative_ratings_late_rate: float
    weight_overrun_rate: float
    most_chosen_slot: Optional[str] = None
    most_chosen_slot_rate: float
    latest_slot: Optional[str] = None
    latest_slot_late_rate: float
    planned_work_intensity: float
    realized_work_intensity: float
    most_intense_slot: Optional[str] = None
    least_intense_slot: Optional[str] = None


class PostalCodeStatsModel(CamelModel):
    postal_code: str
    warehouse: str
    total_deliveries: int
    late_rate: float


class SaturationPointModel(CamelModel):
    hour: str
    demand: int
    capacity: int
    gap: int


class PromisePointModel(CamelModel):
    minute: str
    customer_promise: float
    plan: float
    realized: float
    late: float


class SlotShareModel(CamelModel):
    warehouse: str
    slot: str
    count: int
    percentage: float


class AnalysisResult(CamelModel):
    tolerance: int
    general_kpis: list[KpiModel]
    discrepancy_kpis: list[ComparisonKpiModel]
    quality_kpis: list[KpiModel]
    review_comparison: Optional[ComparisonKpiModel] = None
    global_summary: GlobalSummaryModel
    first_task_late_percentage: float
    overloaded_tours: list[OverloadedTourModel]
    capacity_overruns: list[OverloadedTourModel]
    duration_discrepancies: list[DurationDiscrepancyModel]
    late_start_anomalies: list[LateStartAnomalyModel]
    performance_by_driver: list[DriverPerformanceModel]
    performance_by_city: list[GroupPerformanceModel]
    performance_by_postal_code: list[GroupPerformanceModel]
    performance_by_depot: list[GroupPerformanceModel]
    performance_by_warehouse: list[GroupPerformanceModel]
    delays_by_warehouse: list[KeyCountModel]
    delays_by_city: list[KeyCountModel]
    delays_by_postal_code: list[KeyCountModel]
    delays_by_hour: list[KeyCountModel]
    advances_by_warehouse: list[KeyCountModel]
    advances_by_city: list[KeyCountModel]
    advances_by_postal_code: list[KeyCountModel]
    advances_by_hour: list[KeyCountModel]
    performance_by_day_of_week: list[PeriodPerformanceModel]
    performance_by_time_slot: list[PeriodPerformanceModel]
    delay_histogram: list[HistogramBinModel]
    workload_by_hour: list[HourlyWorkloadModel]
    avg_workload_by_slot: list[SlotWorkloadModel]
    avg_workload: AverageWorkloadModel
    depot_stats: list[DepotStatsModel]
    postal_code_stats: list[PostalCodeStatsModel]
    saturation: list[SaturationPointModel]
    customer_promise: list[PromisePointModel]
    actual_slot_distribution: list[SlotShareModel]
    simulated_promise: list[PromisePointModel]
    cities: list[str]
    depots: list[str]
    warehouses: list[str]
