import numpy as np
import pytest

from delivery_analytics.models.domain import DelayStatus, MergedRecord, Task, TimeOfDay, Tour
from delivery_analytics.services.analysis.simulation import (
    DemandSimulator,
    actual_slot_distribution,
    customer_promise,
    minute_label,
    saturation,
)


def _record(slot: tuple[int, int], predicted: tuple[int, int], closure: tuple[int, int], *, late=False, warehouse="W1"):
    key = f"T1|2024-01-10|{warehouse}"
    task = Task(
        tour_key=key,
        tour_name="T1",
        date="2024-01-10",
        warehouse=warehouse,
        slot_start=TimeOfDay.from_hms(slot[0]),
        slot_end=TimeOfDay.from_hms(slot[1]),
        predicted_arrival=TimeOfDay.from_hms(*predicted),
        closure=TimeOfDay.from_hms(*closure),
        delay_status=DelayStatus.LATE if late else DelayStatus.ON_TIME,
    )
    tour = Tour(unique_id=key, name="T1", date="2024-01-10", warehouse=warehouse)
    return MergedRecord(task=task, tour=tour, order=1)


@pytest.fixture
def records():
    return [
        _record((8, 10), (8, 30), (8, 50)),
        _record((8, 10), (9, 0), (9, 40), late=True),
        _record((10, 12), (10, 15), (11, 30)),
        _record((14, 16), (14, 45), (15, 0), warehouse="W2"),
    ]


def test_minute_label_wraps_the_day():
    assert minute_label(0) == "00:00"
    assert minute_label(6 * 60 + 5) == "06:05"
    assert minute_label(24 * 60 + 30) == "00:30"


def test_window_counts_conserve_the_order_volume(records):
    simulator = DemandSimulator(random_source=1)
    counts = simulator.window_counts(records)

    assert len(counts) == len(simulator.window_starts()) == 32
    assert next(iter(counts)) == "06:00-08:00"
    assert sum(counts.values()) == pytest.approx(len(records))
    assert counts["08:00-10:00"] > counts["08:30-10:30"] > 0


def test_window_counts_without_demand_are_zero():
    simulator = DemandSimulator(random_source=1)
    assert set(simulator.window_counts([]).values()) == {0.0}


def test_offsets_are_whole_minutes(records):
    plan, realized, late = DemandSimulator.offsets(records)

    # Plan offsets 30, 60, 15, 45 minutes; execution offsets 20, 40, 75, 15.
    assert plan == 38
    assert realized == 38
    assert late == pytest.approx(0.25)


def test_seeded_simulation_is_reproducible(records):
    first = DemandSimulator(random_source=7).simulate(records)
    second = DemandSimulator(random_source=np.random.default_rng(7)).simulate(records)

    assert first == second
    assert first[0].minute == "06:00"
    assert first[-1].minute == "22:59"
    assert len(first) == 17 * 60


def test_simulation_spreads_volume_and_marks_a_late_share(records):
    points = DemandSimulator(random_source=3).simulate(records)

    promise = sum(point.customer_promise for point in points)
    late = sum(point.late for point in points)
    realized = sum(point.realized for point in points)

    assert promise == pytest.approx(len(records))
    assert 0 < late < realized <= promise + 1e-9


def test_simulation_rejects_inverted_hours():
    with pytest.raises(ValueError):
        DemandSimulator(start_hour=10, end_hour=8)


def test_customer_promise_curves(records):
    points = customer_promise(records)
    by_minute = {point.minute: point for point in points}

    assert points[0].minute == "06:00"
    assert points[-1].minute == "22:59"
    assert by_minute["08:00"].customer_promise == pytest.approx(2 / 120)
    assert by_minute["10:00"].customer_promise == pytest.approx(1 / 120)
    assert by_minute["08:30"].plan == 1
    assert by_minute["09:40"].realized == 1
    assert by_minute["09:40"].late == 1
    assert by_minute["08:50"].late == 0
    assert sum(point.customer_promise for point in points) == pytest.approx(len(records))


def test_saturation_compares_open_slots_with_closures(records):
    rows = {row.hour: row for row in saturation(records)}

    assert list(rows) == ["08:00", "09:00", "10:00", "11:00", "14:00", "15:00"]
    assert (rows["08:00"].demand, rows["08:00"].capacity, rows["08:00"].gap) == (2, 1, 1)
    assert rows["11:00"].capacity == 1
    assert rows["15:00"].gap == 0


def test_actual_slot_distribution_is_per_warehouse(records):
    shares = actual_slot_distribution(records)

    assert [(share.warehouse, share.slot, share.count) for share in shares] == [
        ("W1", "08:00-10:00", 2),
        ("W1", "10:00-12:00", 1),
        ("W2", "14:00-16:00", 1),
    ]
    assert shares[0].percentage == pytest.approx(200 / 3)
    assert shares[2].percentage == pytest.approx(100.0)
