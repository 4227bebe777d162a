from __future__ import annotations

from fastapi.testclient import TestClient


def test_preserves_incoming_request_id_header(api_client: TestClient):
    incoming_id = "test-request-id-123"
    resp = api_client.get("/health", headers={"X-Request-ID": incoming_id})

    assert resp.status_code == 200
    assert resp.headers.get("X-Request-ID") == incoming_id


def test_generates_request_id_when_missing(api_client: TestClient):
    resp = api_client.get("/health")

    assert resp.status_code == 200
    generated = resp.headers.get("X-Request-ID")
    assert generated
    assert isinstance(generated, str)

    duration = resp.headers.get("X-Request-Duration-ms")
    assert duration is not None


def test_error_body_carries_request_id(api_client: TestClient):
    resp = api_client.get("/api/pokemon/missingno", headers={"X-Request-ID": "trace-404"})

    assert resp.status_code == 404
    assert resp.json()["error"]["request_id"] == "trace-404"
    assert resp.headers.get("X-Request-ID") == "trace-404"
