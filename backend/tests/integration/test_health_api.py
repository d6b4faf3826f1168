"""Integration tests for the health endpoint and generic error rendering."""

from __future__ import annotations

from tests.helpers.assertions import assert_problem


def test_health_reports_database(client) -> None:
    resp = client.get("/api/v1/health")

    assert resp.status_code == 200
    body = resp.get_json()
    assert body["status"] == "ok"
    assert body["db"] == "ok"


def test_unknown_route_is_problem_json(client) -> None:
    resp = client.get("/api/v1/does-not-exist")

    body = assert_problem(resp, 404, "not_found")
    assert body["instance"] == "/api/v1/does-not-exist"
    assert body["request_id"]


def test_request_id_header_is_set(client) -> None:
    resp = client.get("/api/v1/health")

    assert resp.headers.get("X-Request-ID")
