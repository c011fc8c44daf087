"""User filters applied to merged records before any aggregation."""

from __future__ import annotations

import logging
from collections import Counter, defaultdict
from datetime import date
from typing import Iterable, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ...config import settings
from ...data.aliases import normalize_header
from ...models.domain import MergedRecord


class DateRange(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    start: Optional[date] = Field(None, alias="from")
    end: Optional[date] = Field(None, alias="to")

    def contains(self, value: str) -> bool:
        if not value:
            return False
        if self.start is not None and value < self.start.isoformat():
            return False
        if self.end is not None and value > self.end.isoformat():
            return False
        return True


class FilterConfig(BaseModel):
    """Filters recognised by the analysis endpoint (camelCase or snake_case keys)."""

    model_config = ConfigDict(populate_by_name=True)

    date_range: Optional[DateRange] = Field(None, alias="dateRange")
    selected_date: Optional[date] = Field(None, alias="selectedDate")
    depot: Optional[str] = None
    entrepot: Optional[str] = None
    city: Optional[str] = None
    code_postal: Optional[str] = Field(None, alias="codePostal")
    heure: Optional[int] = Field(None, ge=0, le=23, description="Keep tasks closed during this hour.")
    punctuality_threshold: int = Field(
        default_factory=lambda: settings.punctuality_threshold_seconds,
        ge=0,
        alias="punctualityThreshold",
    )
    top_postal_codes: Optional[int] = Field(None, ge=1, alias="topPostalCodes")
    exclude_mad_delays: bool = Field(False, alias="excludeMadDelays")
    mad_delays: list[str] = Field(default_factory=list, alias="madDelays")
    tours_100_mobile: bool = Field(False, alias="tours100Mobile")

    @model_validator(mode="after")
    def _check_calendar_filters(self) -> "FilterConfig":
        if self.date_range is not None and self.selected_date is not None:
            raise ValueError("dateRange and selectedDate cannot be combined")
        return self


def is_completed(record: MergedRecord, statuses: Sequence[str] | None = None) -> bool:
    """Tasks with a known tour and a completed status (accents and case ignored)."""
    if record.tour is None:
        return False
    values = settings.completed_status_values if statuses is None else statuses
    status = normalize_header(record.task.status)
    return bool(status) and status in {normalize_header(value) for value in values}


def completed_records(records: Iterable[MergedRecord], statuses: Sequence[str] | None = None) -> list[MergedRecord]:
    return [record for record in records if is_completed(record, statuses)]


def _matches(value: Optional[str], expected: Optional[str]) -> bool:
    if not expected:
        return True
    candidate = (value or "").strip().lower()
    wanted = expected.strip().lower()
    return candidate == wanted or candidate.startswith(wanted)


def _mobile_tours(records: Sequence[MergedRecord], marker: str) -> set[str]:
    channels: dict[str, list[Optional[str]]] = defaultdict(list)
    for record in records:
        channels[record.task.tour_key].append(record.task.completed_by)
    marker = marker.lower()
    return {
        tour_key
        for tour_key, values in channels.items()
        if values and all(value and marker in value.lower() for value in values)
    }


def apply_filters(
    records: Sequence[MergedRecord],
    filters: FilterConfig,
    *,
    mobile_marker: str | None = None,
) -> list[MergedRecord]:
    """Return the records passing every active filter, input order preserved.

    Field filters run first; the 100%-mobile tour check looks at every record
    of a tour, and the top-postal-code cut ranks the survivors by volume.
    """
    marker = settings.mobile_channel_marker if mobile_marker is None else mobile_marker
    mad_keys = set(filters.mad_delays) if filters.exclude_mad_delays else set()
    selected = filters.selected_date.isoformat() if filters.selected_date else None

    kept: list[MergedRecord] = []
    for record in records:
        task = record.task
        if selected is not None and task.date != selected:
            continue
        if filters.date_range is not None and not filters.date_range.contains(task.date):
            continue
        if not _matches(record.depot, filters.depot):
            continue
        if not _matches(task.warehouse, filters.entrepot):
            continue
        if not _matches(task.city, filters.city):
            continue
        if not _matches(task.postal_code, filters.code_postal):
            continue
        if filters.heure is not None and task.closure.hour != filters.heure:
            continue
        if mad_keys and f"{task.warehouse}|{task.date}" in mad_keys:
            continue
        kept.append(record)

    if filters.tours_100_mobile:
        mobile = _mobile_tours(records, marker)
        kept = [record for record in kept if record.task.tour_key in mobile]

    if filters.top_postal_codes:
        volumes = Counter(record.task.postal_code for record in kept if record.task.postal_code)
        ranked = sorted(volumes.items(), key=lambda item: (-item[1], item[0]))
        top = {code for code, _ in ranked[: filters.top_postal_codes]}
        kept = [record for record in kept if record.task.postal_code in top]

    logging.info(f"Filters kept {len(kept)} of {len(records)} records")
    return kept
