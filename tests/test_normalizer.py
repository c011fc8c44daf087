import pytest

from delivery_analytics.data.aliases import (
    HEADER_ALIASES,
    MANDATORY_FIELDS,
    SCHEMAS,
    alias_collisions,
    find_field,
    normalize_header,
)
from delivery_analytics.data.normalizer import normalize_grid
from delivery_analytics.errors import SchemaError
from delivery_analytics.models.domain import TimeOfDay


def test_header_with_accent_case_and_trailing_space_matches_alias():
    assert find_field("Entrepôt ", "tours") == "warehouse"
    assert find_field("ENTREPOT", "tasks") == "warehouse"
    assert find_field("Heure d’arrivée sur site", "tasks") == "realized_arrival"
    assert find_field("Unknown column", "tasks") is None


def test_normalize_header_collapses_whitespace_and_accents():
    assert normalize_header("  Capacité   Poids (kg) ") == "capacite poids (kg)"
    assert normalize_header(None) == ""


@pytest.mark.parametrize("schema", SCHEMAS)
def test_alias_tables_have_no_collisions(schema):
    assert alias_collisions(schema) == {}


@pytest.mark.parametrize("schema", SCHEMAS)
def test_mandatory_fields_have_aliases(schema):
    for field in MANDATORY_FIELDS[schema]:
        assert HEADER_ALIASES[schema][field]


def test_normalization_succeeds_with_trailing_space_header():
    grid = [
        ["Nom", "Date", "Entrepôt ", "Poids (kg)"],
        ["T1", "10/01/2024", "W1", "100,5"],
    ]
    sheet = normalize_grid(grid, "tours")
    assert sheet.rows == [{"name": "T1", "date": "2024-01-10", "warehouse": "W1", "planned_weight": 100.5}]


def test_missing_mandatory_header_raises_schema_error():
    grid = [["Nom", "Date"], ["T1", "10/01/2024"]]
    with pytest.raises(SchemaError) as excinfo:
        normalize_grid(grid, "tours")

    error = excinfo.value
    assert error.schema == "tours"
    assert error.missing == ["warehouse"]
    assert error.examples == ["entrepôt"]
    assert "entrepôt" in str(error)
    assert error.to_dict()["error"] == "schema_error"


def test_rows_are_filtered_and_cells_defaulted():
    grid = [
        ["Tournée", "Date", "Entrepôt", "Poids", "Notez votre livraison", "Départ", "Code postal", "Colonne libre"],
        ["T1", "10/01/2024", "W1", "12,5", "", "10:00", 75001, "x"],
        [None, "", None, None, None, None, None, None],
        ["T1", "", "W1", "3", "4", "10:00", "75002", "y"],
        ["T2", "10/01/2024", "W1", "abc", "null", "", "75003", "z"],
    ]
    sheet = normalize_grid(grid, "tasks")

    assert sheet.blank_rows == 1
    assert sheet.rejected_rows == 1
    assert len(sheet.rows) == 2

    first, second = sheet.rows
    assert first["weight"] == pytest.approx(12.5)
    assert first["rating"] is None
    assert first["slot_start"] == TimeOfDay.from_hms(10)
    assert first["postal_code"] == "75001"
    assert "colonne libre" not in first

    assert second["weight"] == 0.0
    assert second["rating"] is None
    assert second["slot_start"] == TimeOfDay(0)


def test_distance_in_metres_is_converted_to_kilometres():
    grid = [["Nom", "Date", "Entrepôt", "Distance (m)"], ["T1", "2024-01-10", "W1", "12500"]]
    sheet = normalize_grid(grid, "tours")
    assert sheet.rows[0]["planned_distance"] == pytest.approx(12.5)


def test_first_matching_column_wins():
    grid = [["Nom", "Tournée", "Date", "Entrepôt"], ["first", "second", "2024-01-10", "W1"]]
    sheet = normalize_grid(grid, "tours")
    assert sheet.rows[0]["name"] == "first"


def test_empty_grid_yields_no_rows():
    sheet = normalize_grid([], "tasks")
    assert sheet.rows == []
