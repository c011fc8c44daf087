"""Pydantic request/response models for ingestion endpoints."""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ..models.domain import MergedRecord, Tour


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class IngestRequest(BaseModel):
    tours: list[list[Any]] = Field(..., description="Tours sheet: header row followed by data rows.")
    tasks: list[list[Any]] = Field(..., description="Tasks sheet: header row followed by data rows.")


class TourModel(CamelModel):
    unique_id: str
    name: str
    date: str
    warehouse: str
    driver: Optional[str] = None
    planned_weight: float
    realized_weight: float
    weight_capacity: float
    planned_bins: float
    realized_bins: float
    bin_capacity: float
    planned_departure: int
    realized_departure: int
    realized_duration: int
    planned_operational_duration: int

    @classmethod
    def from_tour(cls, tour: Tour) -> "TourModel":
        return cls(
            unique_id=tour.unique_id,
            name=tour.name,
            date=tour.date,
            warehouse=tour.warehouse,
            driver=tour.driver,
            planned_weight=tour.planned_weight,
            realized_weight=tour.realized_weight,
            weight_capacity=tour.weight_capacity,
            planned_bins=tour.planned_bins,
            realized_bins=tour.realized_bins,
            bin_capacity=tour.bin_capacity,
            planned_departure=int(tour.planned_departure),
            realized_departure=int(tour.realized_departure),
            realized_duration=tour.realized_duration,
            planned_operational_duration=tour.planned_operational_duration,
        )


class MergedRecordModel(CamelModel):
    order: int
    depot: str
    tour_key: str
    matched: bool
    date: str
    warehouse: str
    driver: Optional[str] = None
    status: str
    completed_by: Optional[str] = None
    weight: float
    items: float
    slot_start: int
    slot_end: int
    predicted_arrival: int
    realized_arrival: int
    closure: int
    retard: float
    city: str
    postal_code: str
    rating: Optional[float] = None
    comment: Optional[str] = None

    @classmethod
    def from_record(cls, record: MergedRecord) -> "MergedRecordModel":
        task = record.task
        return cls(
            order=record.order,
            depot=record.depot,
            tour_key=task.tour_key,
            matched=record.tour is not None,
            date=task.date,
            warehouse=task.warehouse,
            driver=task.driver,
            status=task.status,
            completed_by=task.completed_by,
            weight=task.weight,
            items=task.items,
            slot_start=int(task.slot_start),
            slot_end=int(task.slot_end),
            predicted_arrival=int(task.predicted_arrival),
            realized_arrival=int(task.realized_arrival),
            closure=int(task.closure),
            retard=task.retard,
            city=task.city,
            postal_code=task.postal_code,
            rating=task.rating,
            comment=task.comment,
        )


class IngestResponse(CamelModel):
    tour_count: int
    task_count: int
    matched_count: int
    tours: list[TourModel]
    records: list[MergedRecordModel]
