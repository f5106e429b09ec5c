"""Tests for the application-level endpoints."""

from fastapi.testclient import TestClient

from ingest.constants import APP_TITLE, APP_VERSION


def test_health(client: TestClient) -> None:
    resp = client.get("/healthz")
    assert resp.status_code == 200
    assert resp.json() == {"status": "healthy"}


def test_root(client: TestClient) -> None:
    resp = client.get("/")
    assert resp.json() == {"message": APP_TITLE, "version": APP_VERSION}


def test_request_id_generated(client: TestClient) -> None:
    resp = client.get("/healthz")
    assert resp.headers["X-Request-ID"]
