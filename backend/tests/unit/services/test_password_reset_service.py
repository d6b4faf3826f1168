# tests/unit/services/test_password_reset_service.py
from __future__ import annotations

import logging
from datetime import timedelta

import pytest
from account_api.models.refresh_token import RevocationReason
from account_api.repositories.account import AccountRepository
from account_api.repositories.password_reset import PasswordResetRepository
from account_api.repositories.refresh_token import RefreshTokenRepository
from account_api.services._shared.errors import InvalidTokenError, TokenExpiredError
from account_api.services._shared.ports import SequenceRandomSource
from account_api.services.password_reset import (
    PasswordResetIssuedOut,
    PasswordResetOut,
    PasswordResetService,
)
from tests.factories.account import DEFAULT_PASSWORD, AccountFactory
from tests.factories.password_reset import PasswordResetRequestFactory
from tests.factories.refresh_token import RefreshTokenFactory
from tests.helpers.clock import NOW


@pytest.fixture()
def service(clock) -> PasswordResetService:
    return PasswordResetService(
        clock=clock,
        random_source=SequenceRandomSource(prefix="reset"),
        ttl=timedelta(minutes=30),
    )


# ------------------------------ Requests ---------------------------------- #
def test_request_reset_stores_token_and_calls_hook(service):
    account = AccountFactory(email="reset@example.com")
    delivered: list[PasswordResetIssuedOut] = []

    issued = service.request_reset("Reset@Example.com", on_issued=delivered.append)

    assert issued is not None
    assert delivered == [issued]
    assert issued.token == "reset-1"
    assert issued.account_id == account.id
    assert issued.email == "reset@example.com"
    assert issued.expires_at == NOW + timedelta(minutes=30)
    assert PasswordResetRepository().get_by_token("reset-1").used_at is None


@pytest.mark.parametrize("kind", ["unknown", "disabled", "provider-only"])
def test_request_reset_is_silent_for_ineligible_accounts(service, kind):
    if kind == "disabled":
        AccountFactory(email="who@example.com", is_active=False)
    elif kind == "provider-only":
        AccountFactory(email="who@example.com", oauth=True)
    delivered: list = []

    assert service.request_reset("who@example.com", on_issued=delivered.append) is None
    assert delivered == []


def test_failing_hook_does_not_undo_the_request(service, caplog):
    AccountFactory(email="hook@example.com")

    def _boom(_issued):
        raise RuntimeError("smtp down")

    with caplog.at_level(logging.ERROR):
        issued = service.request_reset("hook@example.com", on_issued=_boom)

    assert issued is not None
    assert PasswordResetRepository().get_by_token(issued.token) is not None
    assert any(getattr(r, "event", None) == "password_reset.hook_failed" for r in caplog.records)


# ------------------------------ Completion -------------------------------- #
def test_reset_password_sets_password_and_ends_sessions(service):
    req = PasswordResetRequestFactory()
    account = req.account
    for _ in range(2):
        RefreshTokenFactory(account=account)
    RefreshTokenFactory(account=account, expired=True)

    out = service.reset_password(req.token, "brand-new-pass")

    assert isinstance(out, PasswordResetOut)
    assert out.account_id == account.id
    assert out.revoked_sessions == 2

    refreshed = AccountRepository().get(account.id)
    assert refreshed.verify_password("brand-new-pass")
    assert not refreshed.verify_password(DEFAULT_PASSWORD)
    ledger = RefreshTokenRepository()
    assert ledger.list_active_for_account(account.id, now=NOW) == []
    reasons = {row.revocation_reason for row in account.refresh_tokens if row.revoked_at}
    assert reasons == {RevocationReason.PASSWORD_RESET}
    assert PasswordResetRepository().get(req.id).used_at == NOW


def test_reset_token_is_single_use(service):
    req = PasswordResetRequestFactory()
    service.reset_password(req.token, "first-new-pass")

    with pytest.raises(InvalidTokenError):
        service.reset_password(req.token, "second-new-pass")

    assert AccountRepository().get(req.account_id).verify_password("first-new-pass")


def test_expired_reset_token(service, clock):
    req = PasswordResetRequestFactory()
    clock.advance(timedelta(hours=1))

    with pytest.raises(TokenExpiredError):
        service.reset_password(req.token, "too-late-pass")

    assert AccountRepository().get(req.account_id).verify_password(DEFAULT_PASSWORD)


def test_unknown_reset_token(service):
    with pytest.raises(InvalidTokenError):
        service.reset_password("never-issued", "whatever-pass")


def test_reset_for_disabled_account_is_invalid(service):
    req = PasswordResetRequestFactory(account=AccountFactory(is_active=False))

    with pytest.raises(InvalidTokenError):
        service.reset_password(req.token, "new-pass-123")

    assert PasswordResetRepository().get(req.id).used_at is None
