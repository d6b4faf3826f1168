"""Tests for the ``flask tokens`` command group."""

from __future__ import annotations

from uuid import uuid4

import pytest
from account_api.models.refresh_token import RevocationReason
from account_api.repositories.refresh_token import RefreshTokenRepository
from tests.factories.account import AccountFactory
from tests.factories.refresh_token import RefreshTokenFactory
from tests.helpers.clock import NOW


@pytest.fixture()
def runner(app):
    return app.test_cli_runner()


def test_revoke_account_revokes_active_sessions(runner, app_clock):
    account = AccountFactory()
    rows = [RefreshTokenFactory(account=account) for _ in range(2)]

    result = runner.invoke(
        args=["tokens", "revoke-account", str(account.id), "--reason", "password-reset"]
    )

    assert result.exit_code == 0, result.output
    assert "Revoked 2 session(s)." in result.output
    ledger = RefreshTokenRepository()
    for row in rows:
        assert ledger.get_by_token(row.token).revocation_reason == RevocationReason.PASSWORD_RESET


def test_revoke_account_rejects_bad_ids(runner):
    result = runner.invoke(args=["tokens", "revoke-account", "not-a-uuid"])

    assert result.exit_code != 0
    assert "not a valid account id" in result.output


def test_sessions_lists_active_tokens(runner, app_clock):
    account = AccountFactory()
    row = RefreshTokenFactory(account=account, ip_address="10.9.8.7")
    RefreshTokenFactory(account=account, revoked=True)

    result = runner.invoke(args=["tokens", "sessions", str(account.id)])

    assert result.exit_code == 0, result.output
    lines = result.output.strip().splitlines()
    assert len(lines) == 1
    assert str(row.id) in lines[0]
    assert f"issued={NOW.isoformat()}" in lines[0]
    assert "ip=10.9.8.7" in lines[0]
    assert row.token not in result.output


def test_sessions_for_unknown_account(runner):
    result = runner.invoke(args=["tokens", "sessions", str(uuid4())])

    assert result.exit_code == 1
    assert "Account not found" in result.output
