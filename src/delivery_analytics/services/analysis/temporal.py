"""Time-based breakdowns of late and early deliveries."""

from __future__ import annotations

from collections import Counter
from datetime import date
from typing import Callable, Iterable, Optional, Sequence

from ...models.domain import MergedRecord, TimeOfDay
from .models import HistogramBin, KeyCount, PeriodPerformance
from .punctuality import punctuality_rate

DAY_NAMES = ("Dimanche", "Lundi", "Mardi", "Mercredi", "Jeudi", "Vendredi", "Samedi")

TIME_SLOTS = (
    ("Matin (06-12h)", 6, 12),
    ("Après-midi (12-18h)", 12, 18),
    ("Soir (18-00h)", 18, 24),
)


def hour_label(value: TimeOfDay) -> str:
    return f"{value.hour:02d}:00"


def count_by(records: Iterable[MergedRecord], key: Callable[[MergedRecord], Optional[str]]) -> list[KeyCount]:
    """Count records per non-empty key, most frequent first."""
    counts = Counter(value for value in (key(record) for record in records) if value)
    return [KeyCount(key=value, count=count) for value, count in counts.most_common()]


def count_by_hour(records: Iterable[MergedRecord]) -> list[KeyCount]:
    """Count records per realized-arrival hour (``HH:00``), in clock order."""
    counts = Counter(hour_label(record.task.realized_arrival) for record in records)
    return [KeyCount(key=hour, count=counts[hour]) for hour in sorted(counts)]


def day_of_week(value: str) -> Optional[int]:
    """Sunday=0 weekday index of an ISO date string."""
    if not value:
        return None
    try:
        return date.fromisoformat(value).isoweekday() % 7
    except ValueError:
        return None


def _period(key: str, members: Sequence[MergedRecord]) -> PeriodPerformance:
    late = [record.task.retard for record in members if record.is_late]
    advances = sum(1 for record in members if record.is_early)
    total = len(members)
    return PeriodPerformance(
        key=key,
        total_tasks=total,
        punctuality_rate=punctuality_rate(total - len(late), total),
        avg_delay_minutes=sum(late) / len(late) / 60 if late else 0.0,
        delays=len(late),
        advances=advances,
    )


def performance_by_day_of_week(records: Iterable[MergedRecord]) -> list[PeriodPerformance]:
    """All seven days, Sunday first; punctuality here only penalises late tasks."""
    days: list[list[MergedRecord]] = [[] for _ in DAY_NAMES]
    for record in records:
        index = day_of_week(record.task.date)
        if index is not None:
            days[index].append(record)
    return [_period(name, members) for name, members in zip(DAY_NAMES, days)]


def performance_by_time_slot(records: Iterable[MergedRecord]) -> list[PeriodPerformance]:
    """Morning, afternoon and evening by promised slot start; empty parts are left out."""
    slots: dict[str, list[MergedRecord]] = {label: [] for label, _, _ in TIME_SLOTS}
    for record in records:
        start_hour = record.task.slot_start.seconds // 3600
        for label, first, last in TIME_SLOTS:
            if first <= start_hour < last:
                slots[label].append(record)
                break
    return [_period(label, members) for label, members in slots.items() if members]


def delay_histogram(records: Iterable[MergedRecord], tolerance: int) -> list[HistogramBin]:
    """Seven delay bands around the tolerance window, early to late.

    Bands are half-open on the side away from zero and the on-time band
    ``[-T, T]`` is closed on both ends.
    """
    tolerance_minutes = round(tolerance / 60)
    labels = (
        "> 60 min en avance",
        "30-60 min en avance",
        f"{tolerance_minutes}-30 min en avance",
        "À l'heure",
        f"{tolerance_minutes}-30 min de retard",
        "30-60 min de retard",
        "> 60 min de retard",
    )
    counts = [0] * len(labels)
    for record in records:
        delay = record.task.retard
        if delay < -3600:
            counts[0] += 1
        elif delay < -1800:
            counts[1] += 1
        elif delay < -tolerance:
            counts[2] += 1
        elif delay <= tolerance:
            counts[3] += 1
        elif delay <= 1800:
            counts[4] += 1
        elif delay <= 3600:
            counts[5] += 1
        else:
            counts[6] += 1
    return [HistogramBin(label=label, count=count) for label, count in zip(labels, counts)]
