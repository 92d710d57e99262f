from typing import Iterator

import pytest
from fastapi.testclient import TestClient

from app.main import create_app
from models.records import ThresholdPair
from services.classifier import ThresholdConfig
from services.history import HistoryService, build_default_history_service


@pytest.fixture
def api_client(monkeypatch) -> Iterator[TestClient]:
    service = HistoryService(
        thresholds=ThresholdConfig(
            fill=ThresholdPair(low=30, high=70),
            battery=ThresholdPair(low=50, high=20),
        ),
        granularity=2,
    )

    def build_test_service() -> HistoryService:
        return service

    build_test_service.cache_clear = lambda: None  # type: ignore[attr-defined]

    monkeypatch.setattr("app.main.build_default_history_service", build_test_service)
    monkeypatch.setattr("app.api.build_default_history_service", build_test_service)

    app = create_app()
    with TestClient(app) as client:
        yield client


FILL_STREAM = [
    {"createdAt": "2024-05-01T08:00:10.100Z", "measurement": 40, "measureType": "fill_level"},
    {"createdAt": "2024-05-01T08:00:12.000Z", "measurement": 55, "measureType": "fill_level"},
    {"createdAt": "2024-05-01T08:00:14.500Z", "measurement": 75, "measureType": "fill_level"},
]
BATTERY_STREAM = [
    {"createdAt": "2024-05-01T08:00:10.400Z", "measurement": 90, "measureType": "battery_level"},
]


def test_lifespan_clears_default_service_cache() -> None:
    app = create_app()

    with TestClient(app):
        during = build_default_history_service()

    after = build_default_history_service()
    try:
        assert after is not during
    finally:
        build_default_history_service.cache_clear()


def test_reconcile_history(api_client: TestClient) -> None:
    response = api_client.post(
        "/history/reconcile",
        json={"streams": [BATTERY_STREAM, FILL_STREAM], "device": "bin-7"},
    )

    assert response.status_code == 200
    payload = response.json()
    assert [record["fill_level"] for record in payload["records"]] == [55.0, 75.0]
    assert [record["battery_level"] for record in payload["records"]] == [90.0, 0.0]
    assert [record["fill_band"] for record in payload["records"]] == ["warning", "critical"]
    assert [record["battery_band"] for record in payload["records"]] == ["good", None]
    assert payload["status"]["overall"] == "critical"
    assert payload["status"]["fill"]["color"] == "red"
    assert payload["fill_ranges"] == {"green": [0.0, 30.0], "yellow": [30.0, 70.0], "red": [70.0, 100.0]}
    assert payload["battery_ranges"]["red"] == [0.0, 20.0]
    assert payload["granularity"] == 2
    assert payload["skipped_count"] == 0
    assert payload["issues"] == []


def test_reconcile_with_request_thresholds_and_granularity(api_client: TestClient) -> None:
    response = api_client.post(
        "/history/reconcile",
        json={
            "streams": [FILL_STREAM],
            "granularity": 10,
            "thresholds": {"fill": {"low": 80, "high": 90}, "battery": {"low": 50, "high": 20}},
        },
    )

    assert response.status_code == 200
    payload = response.json()
    assert len(payload["records"]) == 1
    assert payload["records"][0]["fill_level"] == 75.0
    assert payload["records"][0]["fill_band"] == "good"
    assert payload["granularity"] == 10


def test_reconcile_reports_issues(api_client: TestClient) -> None:
    broken = FILL_STREAM + [{"createdAt": "later", "measurement": 1, "measureType": "fill_level"}]

    response = api_client.post(
        "/history/reconcile",
        json={"streams": [broken, FILL_STREAM]},
    )

    assert response.status_code == 200
    payload = response.json()
    assert payload["skipped_count"] == 0
    assert payload["issues"] == [{"stream": 1, "position": -1, "reason": "duplicate kind"}]


def test_reconcile_rejects_zero_granularity(api_client: TestClient) -> None:
    response = api_client.post(
        "/history/reconcile",
        json={"streams": [FILL_STREAM], "granularity": 0},
    )

    assert response.status_code == 422


@pytest.mark.parametrize(
    ("value", "polarity", "band", "color"),
    [
        (29, "ascending_bad", "good", "green"),
        (30, "ascending_bad", "warning", "yellow"),
        (70, "ascending_bad", "critical", "red"),
    ],
)
def test_classify_endpoint(api_client: TestClient, value, polarity, band, color) -> None:
    response = api_client.post(
        "/classify",
        json={"value": value, "thresholds": {"low": 30, "high": 70}, "polarity": polarity},
    )

    assert response.status_code == 200
    assert response.json() == {"band": band, "color": color}


def test_classify_descending(api_client: TestClient) -> None:
    response = api_client.post(
        "/classify",
        json={"value": 19, "thresholds": {"low": 50, "high": 20}, "polarity": "descending_bad"},
    )

    assert response.json()["band"] == "critical"


def test_healthcheck(api_client: TestClient) -> None:
    response = api_client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}
