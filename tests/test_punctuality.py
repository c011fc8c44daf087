import pytest

from delivery_analytics.models.domain import DelayStatus, MergedRecord, Task, TimeOfDay
from delivery_analytics.services.analysis.punctuality import (
    classify_delay,
    classify_records,
    predicted_delay,
    punctuality_stats,
)


def _record(retard: float = 0, predicted: str = "11:00", slot: tuple[str, str] = ("10:00", "12:00")) -> MergedRecord:
    def clock(text: str) -> TimeOfDay:
        hours, minutes = text.split(":")
        return TimeOfDay.from_hms(int(hours), int(minutes))

    task = Task(
        tour_key="T1|2024-01-10|W1",
        tour_name="T1",
        date="2024-01-10",
        warehouse="W1",
        retard=retard,
        slot_start=clock(slot[0]),
        slot_end=clock(slot[1]),
        predicted_arrival=clock(predicted),
    )
    return MergedRecord(task=task, tour=None, order=1)


@pytest.mark.parametrize("tolerance", [0, 1, 60, 959, 3600])
def test_boundary_delay_is_on_time(tolerance):
    assert classify_delay(tolerance, tolerance) is DelayStatus.ON_TIME
    assert classify_delay(-tolerance, tolerance) is DelayStatus.ON_TIME
    assert classify_delay(tolerance + 1, tolerance) is DelayStatus.LATE
    assert classify_delay(-tolerance - 1, tolerance) is DelayStatus.EARLY


def test_retard_of_1000_seconds_depends_on_tolerance():
    assert classify_delay(1000, 959) is DelayStatus.LATE
    assert classify_delay(1000, 1000) is DelayStatus.ON_TIME


@pytest.mark.parametrize(
    "predicted, expected",
    [("11:00", 0), ("10:00", 0), ("12:00", 0), ("09:30", -1800), ("12:20", 1200)],
)
def test_predicted_delay_measures_distance_to_nearest_slot_bound(predicted, expected):
    assert predicted_delay(_record(predicted=predicted).task) == expected


def test_classification_sets_realized_and_predicted_status():
    late = _record(retard=1200, predicted="12:20")
    early = _record(retard=-2000, predicted="09:30")
    on_time = _record(retard=30)

    classify_records([late, early, on_time], 959)

    assert late.task.delay_status is DelayStatus.LATE
    assert late.task.predicted_delay_status is DelayStatus.LATE
    assert early.task.delay_status is DelayStatus.EARLY
    assert early.task.predicted_delay == -1800
    assert early.task.predicted_delay_status is DelayStatus.EARLY
    assert on_time.is_on_time
    assert on_time.task.predicted_delay_status is DelayStatus.ON_TIME


def test_classification_is_idempotent():
    record = _record(retard=1000, predicted="12:30")
    classify_records([record], 959)
    first = (record.task.delay_status, record.task.predicted_delay, record.task.predicted_delay_status)
    classify_records([record], 959)
    assert (record.task.delay_status, record.task.predicted_delay, record.task.predicted_delay_status) == first


def test_punctuality_stats_counts_out_of_time_tasks():
    records = classify_records([_record(retard=2000), _record(retard=-2000), _record(), _record()], 959)
    stats = punctuality_stats(records)

    assert stats.total == 4
    assert stats.out_of_time == 2
    assert stats.realized_rate == pytest.approx(50.0)
    assert stats.planned_rate == pytest.approx(100.0)


def test_punctuality_of_nothing_is_full():
    assert punctuality_stats([]).realized_rate == 100.0
