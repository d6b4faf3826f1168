"""Tests for the application factory."""

from __future__ import annotations

from account_api.core.config import TestingConfig
from account_api.factory import create_app
from tests.helpers.assertions import assert_problem
from tests.helpers.auth import bearer


def test_create_app_wires_problem_responses_for_access_tokens():
    app = create_app(TestingConfig)

    with app.test_client() as client:
        missing = client.get("/api/v1/accounts/me")
        garbled = client.get("/api/v1/accounts/me", headers=bearer("not.a.jwt"))

    assert_problem(missing, 401, "unauthorized")
    assert_problem(garbled, 401, "invalid_token")
