"""Tests for the retention config endpoints."""

from fastapi.testclient import TestClient


def test_unconfigured_service_gets_defaults(client: TestClient) -> None:
    resp = client.get("/api/v1/config/svc-a")
    assert resp.status_code == 200
    data = resp.json()
    assert data["service_name"] == "svc-a"
    assert data["ttl_days"] == 30
    assert data["retention_policy"] == "standard"
    assert data["is_default"] is True


def test_update_creates_and_merges(client: TestClient) -> None:
    resp = client.put("/api/v1/config/svc-a", json={"ttl_days": 7, "alert_on_errors": True})
    assert resp.status_code == 200
    assert resp.json()["ttl_days"] == 7
    assert resp.json()["is_default"] is False

    resp = client.put("/api/v1/config/svc-a", json={"retention_policy": "extended"})
    data = resp.json()
    assert data["ttl_days"] == 7
    assert data["alert_on_errors"] is True
    assert data["retention_policy"] == "extended"


def test_zero_ttl_accepted(client: TestClient) -> None:
    resp = client.put("/api/v1/config/ephemeral", json={"ttl_days": 0})
    assert resp.status_code == 200
    assert resp.json()["ttl_days"] == 0


def test_negative_ttl_rejected(client: TestClient) -> None:
    resp = client.put("/api/v1/config/svc-a", json={"ttl_days": -1})
    assert resp.status_code == 422


def test_invalid_service_name_rejected(client: TestClient) -> None:
    resp = client.put("/api/v1/config/bad.name", json={"ttl_days": 3})
    assert resp.status_code == 400


def test_overview(client: TestClient) -> None:
    client.put("/api/v1/config/svc-b", json={"ttl_days": 3})
    client.put("/api/v1/config/svc-a", json={"ttl_days": 90})

    resp = client.get("/api/v1/config")
    assert resp.status_code == 200
    data = resp.json()
    assert data["defaults"]["default_ttl_days"] == 30
    assert data["defaults"]["enable_agentic_analysis"] is True
    assert [(s["service_name"], s["ttl_days"]) for s in data["services"]] == [("svc-a", 90), ("svc-b", 3)]
