"""Domain models for tours, delivery tasks and their merged view."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

SECONDS_PER_DAY = 24 * 3600


@dataclass(frozen=True, slots=True, order=True)
class TimeOfDay:
    """Seconds since local midnight.

    Not a timestamp: there is no calendar and no timezone. Values above one
    day are legal and mean the clock wrapped past midnight during the tour.
    """

    seconds: int = 0

    @classmethod
    def from_hms(cls, hours: float = 0, minutes: float = 0, seconds: float = 0) -> "TimeOfDay":
        return cls(int(round(hours * 3600 + minutes * 60 + seconds)))

    @property
    def hour(self) -> int:
        """Clock hour (0-23), wrapping values past midnight."""
        return (self.seconds // 3600) % 24

    @property
    def minute(self) -> int:
        return (self.seconds // 60) % 60

    @property
    def minute_of_day(self) -> int:
        return (self.seconds // 60) % (24 * 60)

    def rolled_over(self, days: int = 1) -> "TimeOfDay":
        return TimeOfDay(self.seconds + days * SECONDS_PER_DAY)

    def format(self, with_seconds: bool = False) -> str:
        value = max(self.seconds, 0)
        hours, remainder = divmod(value, 3600)
        minutes, secs = divmod(remainder, 60)
        if with_seconds:
            return f"{hours:02d}:{minutes:02d}:{secs:02d}"
        return f"{hours % 24:02d}:{minutes:02d}"

    def __sub__(self, other: "TimeOfDay") -> int:
        return self.seconds - other.seconds

    def __bool__(self) -> bool:
        return self.seconds != 0

    def __int__(self) -> int:
        return self.seconds


MIDNIGHT = TimeOfDay(0)


class DelayStatus(str, Enum):
    LATE = "late"
    EARLY = "early"
    ON_TIME = "onTime"


@dataclass(slots=True)
class Tour:
    """A planned/executed delivery round for a warehouse on a given date."""

    unique_id: str
    name: str
    date: str
    warehouse: str
    driver: Optional[str] = None
    planned_distance: float = 0.0
    realized_distance: float = 0.0
    planned_duration: float = 0.0
    reported_duration: float = 0.0
    planned_departure: TimeOfDay = MIDNIGHT
    planned_end: TimeOfDay = MIDNIGHT
    realized_departure: TimeOfDay = MIDNIGHT
    started: TimeOfDay = MIDNIGHT
    finished: TimeOfDay = MIDNIGHT
    bin_capacity: float = 0.0
    planned_bins: float = 0.0
    weight_capacity: float = 0.0
    planned_weight: float = 0.0
    preparation_time: float = 0.0
    service_time: float = 0.0
    travel_time: float = 0.0
    majority_postal_code: str = ""
    # Derived from the member tasks once they are all known.
    realized_weight: float = 0.0
    realized_bins: float = 0.0
    realized_duration: int = 0
    planned_operational_duration: int = 0
    first_planned_delivery: TimeOfDay = MIDNIGHT
    first_realized_delivery: TimeOfDay = MIDNIGHT
    last_planned_delivery: TimeOfDay = MIDNIGHT
    last_realized_delivery: TimeOfDay = MIDNIGHT


@dataclass(slots=True)
class Task:
    """A single delivery stop."""

    tour_key: str
    tour_name: str
    date: str
    warehouse: str
    driver: Optional[str] = None
    sequence: float = 0.0
    status: str = ""
    completed_by: Optional[str] = None
    weight: float = 0.0
    items: float = 0.0
    slot_start: TimeOfDay = MIDNIGHT
    slot_end: TimeOfDay = MIDNIGHT
    predicted_arrival: TimeOfDay = MIDNIGHT
    realized_arrival: TimeOfDay = MIDNIGHT
    closure: TimeOfDay = MIDNIGHT
    service_time: float = 0.0
    realized_service_time: float = 0.0
    retard: float = 0.0
    city: str = ""
    postal_code: str = ""
    rating: Optional[float] = None
    comment: Optional[str] = None
    delay_status: Optional[DelayStatus] = None
    predicted_delay: int = 0
    predicted_delay_status: Optional[DelayStatus] = None


@dataclass(slots=True)
class MergedRecord:
    """A task joined with its owning tour (None when the join failed)."""

    task: Task
    tour: Optional[Tour]
    order: int
    depot: str = field(default="Inconnu")

    @property
    def is_late(self) -> bool:
        return self.task.delay_status is DelayStatus.LATE

    @property
    def is_early(self) -> bool:
        return self.task.delay_status is DelayStatus.EARLY

    @property
    def is_on_time(self) -> bool:
        return self.task.delay_status is DelayStatus.ON_TIME

    @property
    def is_rated(self) -> bool:
        return self.task.rating is not None

    @property
    def has_bad_review(self) -> bool:
        return self.task.rating is not None and self.task.rating <= 3
