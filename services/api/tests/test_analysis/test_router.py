"""Tests for the on-demand analysis endpoints."""

import uuid

from fastapi.testclient import TestClient

from logcore.db.enums import SessionStatus
from logcore.queue.broker import DatabaseAnalysisQueue

START = "2024-01-15T10:00:00Z"
END = "2024-01-15T12:00:00Z"


def test_analyze_queues_request(client: TestClient) -> None:
    resp = client.post(
        "/api/v1/analysis/analyze",
        json={"service_name": "svc-a", "start_time": START, "end_time": END, "search_term": "timeout"},
    )
    assert resp.status_code == 200
    data = resp.json()
    assert data["success"] is True
    assert data["message"] == "Analysis queued successfully"
    session_id = data["session_id"]
    assert uuid.UUID(session_id).version == 4
    assert data["status_url"] == f"/api/v1/analysis/status/{session_id}"


async def test_analyze_sends_queue_message(client: TestClient, queue: DatabaseAnalysisQueue) -> None:
    resp = client.post("/api/v1/analysis/analyze", json={"service_name": "svc-a", "start_time": START, "end_time": END})
    session_id = resp.json()["session_id"]

    (delivery,) = await queue.receive_batch(10)

    assert delivery.message_id == session_id
    assert delivery.body["start_time"] == 1_705_312_800_000
    assert delivery.body["end_time"] == 1_705_320_000_000


def test_status_pending_until_worker_runs(client: TestClient) -> None:
    resp = client.post("/api/v1/analysis/analyze", json={"service_name": "svc-a", "start_time": START, "end_time": END})
    session_id = resp.json()["session_id"]

    resp = client.get(f"/api/v1/analysis/status/{session_id}")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == SessionStatus.PENDING.value
    assert data["service_name"] == "svc-a"


def test_status_unknown_session(client: TestClient) -> None:
    resp = client.get("/api/v1/analysis/status/does-not-exist")
    assert resp.status_code == 404


def test_range_too_large(client: TestClient) -> None:
    resp = client.post(
        "/api/v1/analysis/analyze",
        json={"service_name": "svc-a", "start_time": "2024-01-01T00:00:00Z", "end_time": "2024-01-09T00:00:00Z"},
    )
    assert resp.status_code == 400
    assert "Maximum allowed is 7 days" in resp.json()["detail"]


def test_end_before_start(client: TestClient) -> None:
    resp = client.post("/api/v1/analysis/analyze", json={"service_name": "svc-a", "start_time": END, "end_time": START})
    assert resp.status_code == 400


def test_invalid_service_name(client: TestClient) -> None:
    resp = client.post("/api/v1/analysis/analyze", json={"service_name": "a b", "start_time": START, "end_time": END})
    assert resp.status_code == 400


def test_missing_fields(client: TestClient) -> None:
    resp = client.post("/api/v1/analysis/analyze", json={"service_name": "svc-a"})
    assert resp.status_code == 422


def test_sessions_list_empty_until_worker_runs(client: TestClient) -> None:
    client.post("/api/v1/analysis/analyze", json={"service_name": "svc-a", "start_time": START, "end_time": END})

    resp = client.get("/api/v1/analysis/sessions")
    assert resp.status_code == 200
    assert resp.json() == []
