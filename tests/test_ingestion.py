import pytest

from delivery_analytics.data.depots import resolve_depot_name
from delivery_analytics.errors import EmptyDatasetError, SchemaError
from delivery_analytics.models.domain import Task, TimeOfDay, Tour
from delivery_analytics.services.ingestion import ingest_files, ingest_grids
from delivery_analytics.services.merge import aggregate_tour, merge_records

TOURS_HEADER = [
    "Nom",
    "Date",
    "Entrepôt",
    "Livreur",
    "Poids (kg)",
    "Capacité poids (kg)",
    "Départ",
    "Heure de départ réelle du livreur",
    "Démarré",
]
TASKS_HEADER = [
    "Tournée",
    "Date",
    "Entrepôt",
    "Avancement",
    "Poids",
    "Départ",
    "Arrivée",
    "Arrivée approximative",
    "Heure d'arrivée sur site",
    "Heure de clôture",
    "Retard (s)",
    "Ville",
    "Code postal",
]


def _tours_grid():
    return [
        TOURS_HEADER,
        ["T1", "10/01/2024", "Rungis 1", "Alice", "100", "120", "07:00", "06:55", ""],
        ["T2", "10/01/2024", "Rungis 1", "Bob", "50", "80", "21:00", "", "21:10"],
        ["R-backup", "10/01/2024", "Rungis 1", "Carl", "10", "20", "07:00", "", ""],
    ]


def _tasks_grid():
    return [
        TASKS_HEADER,
        ["T1", "10/01/2024", "Rungis 1", "Complétée", "60", "08:00", "10:00", "08:30", "08:40", "08:50", "0", "Paris", "75001"],
        ["T1", "10/01/2024", "Rungis 1", "Complétée", "80", "09:00", "11:00", "09:15", "", "09:45", "120", "Paris", "75002"],
        ["T2", "10/01/2024", "Rungis 1", "Complétée", "20", "22:00", "23:59", "23:30", "00:15", "00:25", "1500", "Ivry", "94200"],
        ["T9", "10/01/2024", "Rungis 1", "Complétée", "5", "08:00", "10:00", "08:30", "08:30", "08:35", "0", "Paris", "75003"],
    ]


def test_ingest_grids_builds_merged_records():
    result = ingest_grids(_tours_grid(), _tasks_grid())

    assert [tour.name for tour in result.tours] == ["T1", "T2"]
    assert len(result.records) == len(result.tasks) == 4
    assert result.matched_count == 3
    assert [record.order for record in result.records] == [1, 2, 3, 4]
    assert result.records[3].tour is None
    assert all(record.depot == "Rungis" for record in result.records)


def test_tour_start_falls_back_through_started_and_planned_departure():
    result = ingest_grids(_tours_grid(), _tasks_grid())
    t1, t2 = result.tours

    assert t1.realized_departure == TimeOfDay.from_hms(6, 55)
    assert t2.realized_departure == TimeOfDay.from_hms(21, 10)


def test_missing_realized_arrival_falls_back_to_closure():
    result = ingest_grids(_tours_grid(), _tasks_grid())
    second = result.tasks[1]
    assert second.realized_arrival == TimeOfDay.from_hms(9, 45)


def test_after_midnight_tasks_are_rolled_over():
    result = ingest_grids(_tours_grid(), _tasks_grid())
    night = result.tasks[2]

    assert night.closure.seconds == 86400 + 25 * 60
    assert night.realized_arrival.seconds == 86400 + 15 * 60


def test_tour_aggregates_are_recomputed_from_matched_tasks():
    result = ingest_grids(_tours_grid(), _tasks_grid())
    t1 = result.tours[0]

    assert t1.realized_weight == pytest.approx(140)
    assert t1.first_realized_delivery == TimeOfDay.from_hms(8, 40)
    assert t1.last_realized_delivery == TimeOfDay.from_hms(9, 45)
    assert t1.realized_duration == 65 * 60
    assert t1.planned_operational_duration == 45 * 60


def test_empty_tasks_sheet_raises_before_analysis():
    with pytest.raises(EmptyDatasetError) as excinfo:
        ingest_grids(_tours_grid(), [TASKS_HEADER])
    assert excinfo.value.schema == "tasks"
    assert excinfo.value.to_dict()["error"] == "empty_dataset"


def test_tours_sheet_with_only_backup_tours_is_empty():
    grid = [TOURS_HEADER, ["R1", "10/01/2024", "W", "", "", "", "", "", ""]]
    with pytest.raises(EmptyDatasetError) as excinfo:
        ingest_grids(grid, _tasks_grid())
    assert excinfo.value.schema == "tours"


def test_tours_schema_is_validated_before_tasks():
    with pytest.raises(SchemaError) as excinfo:
        ingest_grids([["Nom", "Date"]], [["nothing"]])
    assert excinfo.value.schema == "tours"


def test_ingest_files_reads_csv_uploads():
    tours_csv = "Nom;Date;Entrepôt;Poids (kg)\nT1;10/01/2024;Aix Nord;100\n".encode("utf-8")
    tasks_csv = "Tournée;Date;Entrepôt;Poids\nT1;10/01/2024;Aix Nord;12,5\n".encode("utf-8")

    result = ingest_files(tours_csv, "tours.csv", tasks_csv, "tasks.csv")

    assert result.matched_count == 1
    assert result.tours[0].realized_weight == pytest.approx(12.5)
    assert result.records[0].depot == "Aix"


def _tour(name: str = "T1", **kwargs) -> Tour:
    return Tour(unique_id=f"{name}|2024-01-10|W1", name=name, date="2024-01-10", warehouse="W1", **kwargs)


def _task(tour: str = "T1", **kwargs) -> Task:
    return Task(tour_key=f"{tour}|2024-01-10|W1", tour_name=tour, date="2024-01-10", warehouse="W1", **kwargs)


def test_merge_is_a_left_outer_join():
    tours = [_tour("T1"), _tour("T2")]
    tasks = [_task("T1"), _task("T3"), _task("T2"), _task("T1")]

    merged = merge_records(tours, tasks)

    assert len(merged) == len(tasks)
    assert sum(1 for record in merged if record.tour is not None) == 3
    assert merged[1].tour is None


def test_tour_without_tasks_has_zero_durations():
    tour = _tour(realized_duration=99, planned_operational_duration=99)
    aggregate_tour(tour, [])
    assert tour.realized_duration == 0
    assert tour.planned_operational_duration == 0
    assert tour.realized_weight == 0


@pytest.mark.parametrize(
    "warehouse, expected",
    [
        ("Villeneuve la Garenne", "VLG"),
        ("Vill 2", "VLG"),
        ("Solo Antibes", "Antibes"),
        ("Marseille Port", "Marseille"),
        ("", "Inconnu"),
        (None, "Inconnu"),
    ],
)
def test_resolve_depot_name(warehouse, expected):
    assert resolve_depot_name(warehouse) == expected
