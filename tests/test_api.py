import asyncio
import json
from io import BytesIO

import pytest
from fastapi.testclient import TestClient
from openpyxl import Workbook

from delivery_analytics.main import create_app

TOURS = [
    ["Nom", "Date", "Entrepôt", "Livreur", "Poids (kg)", "Départ", "Heure de départ réelle du livreur"],
    ["T1", "10/01/2024", "Rungis 1", "Alice", "100", "07:00", "06:55"],
    ["T2", "10/01/2024", "Vitry 2", "Bob", "50", "09:00", "09:20"],
]
TASKS = [
    [
        "Tournée",
        "Date",
        "Entrepôt",
        "Avancement",
        "Poids",
        "Départ",
        "Arrivée",
        "Arrivée approximative",
        "Heure de clôture",
        "Retard (s)",
        "Ville",
        "Code postal",
    ],
    ["T1", "10/01/2024", "Rungis 1", "Complétée", "60", "08:00", "10:00", "08:30", "08:50", "0", "Paris", "75001"],
    ["T1", "10/01/2024", "Rungis 1", "Complétée", "80", "08:00", "10:00", "09:15", "10:40", "2400", "Paris", "75002"],
    ["T2", "10/01/2024", "Vitry 2", "Complétée", "20", "10:00", "12:00", "10:30", "10:35", "0", "Ivry", "94200"],
]


@pytest.fixture
def api_client() -> TestClient:
    return TestClient(create_app())


def _csv(grid) -> bytes:
    return "\n".join(";".join(cell for cell in row) for row in grid).encode("utf-8")


def _xlsx(grid) -> bytes:
    workbook = Workbook()
    sheet = workbook.active
    for row in grid:
        sheet.append(row)
    buffer = BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


def test_health(api_client: TestClient):
    response = api_client.get("/api/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"

    root = api_client.get("/")
    assert root.json()["health"] == "/api/health"


def test_ingest_json_grids(api_client: TestClient):
    response = api_client.post("/api/ingest", json={"tours": TOURS, "tasks": TASKS})
    assert response.status_code == 200

    body = response.json()
    assert body["tourCount"] == 2
    assert body["taskCount"] == 3
    assert body["matchedCount"] == 3
    assert body["tours"][0]["uniqueId"] == "T1|2024-01-10|Rungis 1"
    assert body["tours"][0]["realizedWeight"] == pytest.approx(140)
    assert body["records"][0]["depot"] == "Rungis"
    assert body["records"][0]["slotStart"] == 8 * 3600


def test_missing_header_is_reported_with_examples(api_client: TestClient):
    tours = [["Nom", "Date"], ["T1", "10/01/2024"]]
    response = api_client.post("/api/ingest", json={"tours": tours, "tasks": TASKS})

    assert response.status_code == 422
    detail = response.json()["detail"]
    assert detail["error"] == "schema_error"
    assert detail["schema"] == "tours"
    assert detail["missing"] == ["warehouse"]
    assert detail["examples"] == ["entrepôt"]


def test_empty_tasks_sheet_is_rejected(api_client: TestClient):
    response = api_client.post("/api/ingest", json={"tours": TOURS, "tasks": TASKS[:1]})
    assert response.status_code == 422
    assert response.json()["detail"]["error"] == "empty_dataset"


def test_upload_rejects_unsupported_files(api_client: TestClient):
    response = api_client.post(
        "/api/ingest/upload",
        files={
            "tours_file": ("tours.txt", b"nothing", "text/plain"),
            "tasks_file": ("tasks.csv", _csv(TASKS), "text/csv"),
        },
    )
    assert response.status_code == 415


def test_upload_reads_workbooks_and_csv(api_client: TestClient):
    response = api_client.post(
        "/api/ingest/upload",
        files={
            "tours_file": (
                "tours.xlsx",
                _xlsx(TOURS),
                "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
            ),
            "tasks_file": ("tasks.csv", _csv(TASKS), "text/csv"),
        },
    )
    assert response.status_code == 200
    assert response.json()["matchedCount"] == 3


def test_analysis_returns_camel_case_report(api_client: TestClient):
    payload = {"tours": TOURS, "tasks": TASKS, "seed": 3}
    response = api_client.post("/api/analysis", json=payload)
    assert response.status_code == 200

    body = response.json()
    assert body["tolerance"] == 959
    assert body["generalKpis"][0] == {"title": "Tournées Analysées", "value": "2", "description": None, "icon": "Truck"}
    assert body["globalSummary"]["punctualityRateRealized"] == pytest.approx(200 / 3)
    assert body["delaysByCity"] == [{"key": "Paris", "count": 1}]
    assert len(body["workloadByHour"]) == 24
    assert body["depots"] == ["Rungis", "Vitry"]
    assert "simulatedPromise" in body
    assert body["reviewComparison"]["label1"] == "Surchargées"
    assert body["capacityOverruns"] == []

    again = api_client.post("/api/analysis", json=payload).json()
    assert again["simulatedPromise"] == body["simulatedPromise"]


def test_analysis_applies_filters(api_client: TestClient):
    payload = {"tours": TOURS, "tasks": TASKS, "filters": {"depot": "vitry", "punctualityThreshold": 600}}
    body = api_client.post("/api/analysis", json=payload).json()

    assert body["tolerance"] == 600
    assert body["generalKpis"][1]["value"] == "1"
    assert body["cities"] == ["Ivry", "Paris"]


def test_analysis_rejects_conflicting_date_filters(api_client: TestClient):
    filters = {"dateRange": {"from": "2024-01-01"}, "selectedDate": "2024-01-10"}
    response = api_client.post("/api/analysis", json={"tours": TOURS, "tasks": TASKS, "filters": filters})
    assert response.status_code == 422


def test_analysis_upload_with_filters(api_client: TestClient):
    response = api_client.post(
        "/api/analysis/upload",
        files={
            "tours_file": ("tours.csv", _csv(TOURS), "text/csv"),
            "tasks_file": ("tasks.csv", _csv(TASKS), "text/csv"),
        },
        data={"filters": json.dumps({"city": "Paris"}), "seed": "1"},
    )
    assert response.status_code == 200
    body = response.json()
    assert body["generalKpis"][0]["value"] == "1"
    assert body["delaysByHour"] == [{"key": "10:00", "count": 1}]


def test_analysis_upload_rejects_malformed_filters(api_client: TestClient):
    response = api_client.post(
        "/api/analysis/upload",
        files={
            "tours_file": ("tours.csv", _csv(TOURS), "text/csv"),
            "tasks_file": ("tasks.csv", _csv(TASKS), "text/csv"),
        },
        data={"filters": "{not json"},
    )
    assert response.status_code == 422


def _runs_off_the_event_loop(calls: list, func):
    def wrapper(*args, **kwargs):
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            calls.append("worker")
        else:
            calls.append("loop")
        return func(*args, **kwargs)

    return wrapper


def test_uploads_are_parsed_and_analysed_in_a_worker_thread(api_client: TestClient, monkeypatch: pytest.MonkeyPatch):
    from delivery_analytics.api.routes import analysis as analysis_routes
    from delivery_analytics.api.routes import ingest as ingest_routes

    calls: list[str] = []
    monkeypatch.setattr(ingest_routes, "ingest_files", _runs_off_the_event_loop(calls, ingest_routes.ingest_files))
    monkeypatch.setattr(
        analysis_routes, "analyze_records", _runs_off_the_event_loop(calls, analysis_routes.analyze_records)
    )

    response = api_client.post(
        "/api/analysis/upload",
        files={
            "tours_file": ("tours.csv", _csv(TOURS), "text/csv"),
            "tasks_file": ("tasks.csv", _csv(TASKS), "text/csv"),
        },
    )

    assert response.status_code == 200
    assert calls == ["worker", "worker"]
