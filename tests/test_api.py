"""HTTP tests for the trend and insight routes."""

import pytest
from fastapi.testclient import TestClient

from usagetrends.api import create_app
from usagetrends.config import Settings
from usagetrends.store import FrameStore


@pytest.fixture
def client(october_store):
    return TestClient(create_app(store=october_store))


def test_daily_trend(client):
    resp = client.get("/trends/daily", params={"date": "2024-10-01"})
    assert resp.status_code == 200
    body = resp.json()
    assert set(body) == {"total_usage_kwh", "device_breakdown", "data"}
    assert isinstance(body["total_usage_kwh"], str)
    assert len(body["data"]) == 24
    assert set(body["data"][0]) == {"x", "fridge", "oven", "lights", "ev charger"}
    assert [p["x"] for p in body["data"][:2]] == ["0:00", "1:00"]


def test_weekly_trend_keys(client):
    body = client.get("/trends/weekly", params={"date": "2024-09-30"}).json()
    assert [p["x"] for p in body["data"]] == [
        "2024-09-30",
        "2024-10-01",
        "2024-10-02",
        "2024-10-03",
        "2024-10-04",
        "2024-10-05",
        "2024-10-06",
    ]


def test_monthly_trend_for_sparse_month(client):
    body = client.get("/trends/monthly", params={"date": "2024-02"}).json()
    assert len(body["data"]) == 29
    assert body["total_usage_kwh"] == "0.00"
    assert body["device_breakdown"] == {
        "fridge": 0,
        "oven": 0,
        "lights": 0,
        "ev charger": 0,
    }


@pytest.mark.parametrize("path", ["/trends/daily", "/trends/weekly", "/trends/monthly"])
def test_missing_date_is_400(client, path):
    resp = client.get(path)
    assert resp.status_code == 400
    assert "error" in resp.json()


def test_malformed_date_is_400(client):
    resp = client.get("/trends/monthly", params={"date": "2024-10-01x"})
    assert resp.status_code == 400
    assert "YYYY-MM" in resp.json()["error"]


def test_insights_route_returns_four_items():
    client = TestClient(create_app(store=FrameStore()))
    body = client.get("/insights").json()
    assert len(body) == 4
    assert body[0] == {
        "emoji": "🔌",
        "title": "Highest consuming device",
        "insight": "Unknown with 0.00 kWh",
    }
    assert body[1]["insight"] == "N/A"
    assert body[2]["insight"] is None and body[3]["insight"] is None


def test_store_failure_is_500(failing_store, caplog):
    client = TestClient(create_app(store=failing_store))
    resp = client.get("/trends/daily", params={"date": "2024-10-01"})
    assert resp.status_code == 500
    assert resp.json() == {"error": "Internal Server Error"}
    assert "Data unavailable" in caplog.text


def test_cors_origins_from_settings(october_store):
    cfg = Settings(cors_origins=["http://localhost:5173"])
    client = TestClient(create_app(store=october_store, config=cfg))
    resp = client.get(
        "/health", headers={"Origin": "http://localhost:5173"}
    )
    assert resp.json() == {"status": "ok"}
    assert resp.headers["access-control-allow-origin"] == "http://localhost:5173"


@pytest.mark.parametrize(
    "path, date",
    [("/trends/daily", "9999-12-31"), ("/trends/weekly", "9999-12-31")],
)
def test_date_at_calendar_end_is_400(client, path, date):
    resp = client.get(path, params={"date": date})
    assert resp.status_code == 400
    assert "supported calendar range" in resp.json()["error"]


def test_response_models_build():
    """Every route's payload type is accepted by FastAPI's response models."""
    app = create_app(store=FrameStore())
    paths = {route.path for route in app.routes}
    assert {"/trends/daily", "/trends/weekly", "/trends/monthly", "/insights"} <= paths
    assert app.openapi()["paths"]["/trends/daily"]["get"]["responses"]["200"]
