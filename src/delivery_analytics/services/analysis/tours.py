"""Per-tour grouping of the analysed records."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Sequence

from ...models.domain import DelayStatus, MergedRecord, Tour
from ..merge import aggregate_tour


@dataclass(slots=True)
class TourGroup:
    tour: Tour
    records: list[MergedRecord] = field(default_factory=list)

    @property
    def late_count(self) -> int:
        return sum(1 for record in self.records if record.task.delay_status is DelayStatus.LATE)


def group_by_tour(records: Sequence[MergedRecord]) -> tuple[dict[str, TourGroup], list[MergedRecord]]:
    """Rebuild tours from the records in scope.

    Each tour is copied and its realized totals and durations recomputed from
    the records given, so the ingested tours stay untouched. Returns the
    groups keyed by tour id and the records re-pointed at the copies.
    Records without a tour are dropped.
    """
    groups: dict[str, TourGroup] = {}
    rebound: list[MergedRecord] = []
    for record in records:
        if record.tour is None:
            continue
        group = groups.get(record.tour.unique_id)
        if group is None:
            group = TourGroup(tour=replace(record.tour))
            groups[record.tour.unique_id] = group
        copy = MergedRecord(task=record.task, tour=group.tour, order=record.order, depot=record.depot)
        group.records.append(copy)
        rebound.append(copy)

    for group in groups.values():
        aggregate_tour(group.tour, [record.task for record in group.records])
    return groups, rebound
