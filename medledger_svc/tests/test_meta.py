"""
Tests for the metric threshold metadata endpoints.
"""


def test_list_thresholds(client):
    response = client.get("/api/v1/meta/thresholds")

    assert response.status_code == 200
    metrics = {m["canonical_name"]: m for m in response.json()["metrics"]}
    assert metrics["blood_pressure_systolic"]["low"] == 90
    assert metrics["blood_pressure_systolic"]["high"] == 140
    assert "pulse" in metrics["heart_rate"]["aliases"]


def test_get_threshold_by_alias(client):
    response = client.get("/api/v1/meta/thresholds/pulse")

    assert response.status_code == 200
    assert response.json()["canonical_name"] == "heart_rate"


def test_get_unknown_threshold(client):
    response = client.get("/api/v1/meta/thresholds/steps")

    assert response.status_code == 404
    assert "steps" in response.json()["detail"]
