"""
Tests for the Capture Lab HTTP service
======================================
Tests cover:
- Health and info endpoints
- Full analysis endpoint
- Single-stage endpoints
- Error mapping (400 for insufficient data, 422 for invalid input)
"""

import pytest
from fastapi.testclient import TestClient

from capture_lab.app import app


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def week_payload(make_series, duck_day_prices, solar_day_outputs):
    prices, pv = make_series(duck_day_prices * 7, solar_day_outputs * 7)
    return {
        "prices": [p.model_dump() for p in prices],
        "pv_profile": [p.model_dump() for p in pv],
    }


class TestServiceEndpoints:

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_info(self, client):
        data = client.get("/info").json()

        assert "DE-LU" in data["markets"]
        assert len(data["features"]) > 0

    def test_analyze(self, client, week_payload):
        payload = dict(week_payload, capacity_mw=15.0, enable_battery=True,
                       battery={"power_mw": 5, "energy_mwh": 10, "efficiency": 0.9})

        response = client.post("/analyze", json=payload)

        assert response.status_code == 200, response.text
        data = response.json()
        assert data["data_points"] == 168
        assert data["kpis"]["negative_hours_count"] == 21
        assert data["battery"]["config"]["power_mw"] == 5
        assert data["representative_weeks"]["typical"] is not None

    def test_analyze_disjoint_series(self, client):
        payload = {
            "prices": [{"timestamp": 0, "price": 10.0}],
            "pv_profile": [{"timestamp": 3600, "output": 1.0}],
            "capacity_mw": 1.0,
        }

        response = client.post("/analyze", json=payload)

        assert response.status_code == 400
        assert "No aligned data" in response.json()["detail"]

    def test_kpis(self, client, week_payload):
        response = client.post("/kpis", json=dict(week_payload, ppa_price=60.0))

        assert response.status_code == 200
        data = response.json()
        assert 0 < data["capture_rate"] < 100
        assert data["ppa_revenue"] is not None

    def test_battery(self, client, week_payload):
        response = client.post("/battery", json=week_payload)

        assert response.status_code == 200
        data = response.json()
        assert len(data["daily_results"]) == 7
        assert data["config"]["energy_mwh"] == 50.0

    def test_representative_weeks(self, client, week_payload):
        response = client.post("/representative-weeks", json=week_payload)

        assert response.status_code == 200
        data = response.json()
        assert data["weeks_evaluated"] == 1
        assert len(data["typical"]["data"]) == 168

    def test_unknown_market_rejected(self, client, week_payload):
        response = client.post("/kpis", json=dict(week_payload, market="XX"))

        assert response.status_code == 400

    def test_invalid_battery_rejected(self, client, week_payload):
        payload = dict(week_payload, battery={"power_mw": 5, "energy_mwh": 10, "efficiency": 1.5})

        response = client.post("/battery", json=payload)

        assert response.status_code == 422

    def test_non_finite_price_rejected(self, client):
        body = (
            '{"prices": [{"timestamp": 0, "price": Infinity}, {"timestamp": 3600, "price": NaN}],'
            ' "pv_profile": [{"timestamp": 0, "output": 1.0}, {"timestamp": 3600, "output": 1.0}]}'
        )

        response = client.post("/kpis", content=body, headers={"Content-Type": "application/json"})

        assert response.status_code == 422
