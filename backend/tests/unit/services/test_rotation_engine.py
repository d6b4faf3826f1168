# tests/unit/services/test_rotation_engine.py
"""Rotation, reuse detection and the revocation cascade."""

from __future__ import annotations

import logging
from datetime import timedelta

import pytest
from account_api.models.refresh_token import RefreshToken, RevocationReason
from account_api.repositories.refresh_token import RefreshTokenRepository
from account_api.services._shared.errors import (
    AccountNotFoundError,
    InvalidTokenError,
    TokenExpiredError,
    TokenReuseDetectedError,
)
from account_api.services.tokens import ClientInfo, RotationEngine
from sqlalchemy import update
from tests.factories.account import AccountFactory
from tests.factories.refresh_token import RefreshTokenFactory
from tests.helpers.clock import NOW


# ------------------------------ Fixtures ---------------------------------- #
@pytest.fixture()
def engine(issuer) -> RotationEngine:
    return RotationEngine(issuer=issuer)


@pytest.fixture()
def ledger() -> RefreshTokenRepository:
    return RefreshTokenRepository()


# -------------------------------- Tests ----------------------------------- #
def test_rotate_retires_presented_token_and_links_successor(engine, issuer, ledger, clock):
    account = AccountFactory()
    first = issuer.issue_pair(account.id)
    clock.advance(timedelta(hours=1))

    second = engine.rotate(first.refresh_token, client=ClientInfo(ip_address="10.1.1.1"))

    assert second.refresh_token == "refresh-2"
    assert second.refresh_expires_at == NOW + timedelta(hours=1, days=7)
    assert issuer.tokens.get_subject(second.access_token) == str(account.id)

    old = ledger.get_by_token(first.refresh_token)
    assert old.revoked_at == NOW + timedelta(hours=1)
    assert old.replaced_by_token == second.refresh_token
    assert old.revocation_reason == RevocationReason.ROTATED

    new = ledger.get_successor(old)
    assert new.token == second.refresh_token
    assert new.is_active_at(clock.now())
    assert new.ip_address == "10.1.1.1"


def test_rotation_chain_keeps_one_active_token(engine, issuer, ledger):
    account = AccountFactory()
    pair = issuer.issue_pair(account.id)
    seen = [pair.refresh_token]

    for _ in range(3):
        pair = engine.rotate(pair.refresh_token)
        seen.append(pair.refresh_token)

    active = ledger.list_active_for_account(account.id, now=NOW)
    assert [row.token for row in active] == [seen[-1]]

    row = ledger.get_by_token(seen[0])
    walked = [row.token]
    while (row := ledger.get_successor(row)) is not None:
        walked.append(row.token)
    assert walked == seen


def test_replaying_a_rotated_token_revokes_every_session(engine, issuer, ledger):
    account = AccountFactory()
    stolen = issuer.issue_pair(account.id)
    other_device = issuer.issue_pair(account.id)
    bystander = RefreshTokenFactory()
    current = engine.rotate(stolen.refresh_token)

    with pytest.raises(TokenReuseDetectedError) as excinfo:
        engine.rotate(stolen.refresh_token)

    assert excinfo.value.account_id == account.id
    assert excinfo.value.revoked == 2
    for token in (current.refresh_token, other_device.refresh_token):
        row = ledger.get_by_token(token)
        assert row.revoked_at == NOW
        assert row.revocation_reason == RevocationReason.REUSE_DETECTED
    # The replayed row keeps its original transition.
    assert ledger.get_by_token(stolen.refresh_token).revocation_reason == RevocationReason.ROTATED
    assert ledger.get_by_token(bystander.token).revoked_at is None
    assert ledger.list_active_for_account(account.id, now=NOW) == []


def test_successor_of_a_replayed_token_is_unusable(engine, issuer):
    account = AccountFactory()
    first = issuer.issue_pair(account.id)
    second = engine.rotate(first.refresh_token)

    with pytest.raises(TokenReuseDetectedError):
        engine.rotate(first.refresh_token)

    with pytest.raises(TokenReuseDetectedError) as excinfo:
        engine.rotate(second.refresh_token)
    assert excinfo.value.revoked == 0


def test_token_revoked_by_logout_counts_as_reuse(engine, issuer, ledger):
    account = AccountFactory()
    row = RefreshTokenFactory(account=account, revoked=True)
    live = issuer.issue_pair(account.id)

    with pytest.raises(TokenReuseDetectedError):
        engine.rotate(row.token)

    assert ledger.get_by_token(live.refresh_token).revocation_reason == RevocationReason.REUSE_DETECTED


def test_reuse_is_logged_as_a_warning(engine, issuer, caplog):
    account = AccountFactory()
    first = issuer.issue_pair(account.id)
    engine.rotate(first.refresh_token)

    with caplog.at_level(logging.WARNING), pytest.raises(TokenReuseDetectedError):
        engine.rotate(first.refresh_token)

    records = [r for r in caplog.records if getattr(r, "event", None) == "refresh_token.reuse_detected"]
    assert len(records) == 1
    assert records[0].levelno == logging.WARNING
    assert records[0].account_id == str(account.id)
    assert records[0].revoked == 1


@pytest.mark.parametrize("presented", ["never-issued", ""])
def test_unknown_token_is_invalid(engine, presented):
    with pytest.raises(InvalidTokenError):
        engine.rotate(presented)


def test_expired_token_is_rejected_without_side_effects(engine, issuer, ledger):
    account = AccountFactory()
    expired = RefreshTokenFactory(account=account, expired=True)
    live = issuer.issue_pair(account.id)

    with pytest.raises(TokenExpiredError):
        engine.rotate(expired.token)

    assert ledger.get_by_token(expired.token).revoked_at is None
    assert ledger.get_by_token(live.refresh_token).revoked_at is None


def test_token_expires_exactly_at_expires_at(engine, issuer, clock):
    account = AccountFactory()
    pair = issuer.issue_pair(account.id)
    clock.set(pair.refresh_expires_at)

    with pytest.raises(TokenExpiredError):
        engine.rotate(pair.refresh_token)


def test_disabled_account_cannot_rotate(engine, ledger):
    account = AccountFactory(is_active=False)
    row = RefreshTokenFactory(account=account)

    with pytest.raises(AccountNotFoundError) as excinfo:
        engine.rotate(row.token)

    assert excinfo.value.key == str(account.id)
    assert ledger.get_by_token(row.token).revoked_at is None


def test_losing_a_concurrent_rotation_is_treated_as_reuse(engine, issuer, ledger, monkeypatch):
    """Another writer retires the token between our read and our guarded update."""
    account = AccountFactory()
    contested = issuer.issue_pair(account.id)
    other_device = issuer.issue_pair(account.id)
    original = RefreshTokenRepository.mark_rotated

    def _racing_mark_rotated(self, token_id, *, successor, now):
        self.session.execute(
            update(RefreshToken)
            .where(RefreshToken.id == token_id)
            .values(
                revoked_at=now,
                replaced_by_token="winner-token",
                revocation_reason=RevocationReason.ROTATED,
            )
        )
        return original(self, token_id, successor=successor, now=now)

    monkeypatch.setattr(RefreshTokenRepository, "mark_rotated", _racing_mark_rotated)

    with pytest.raises(TokenReuseDetectedError) as excinfo:
        engine.rotate(contested.refresh_token)

    assert excinfo.value.revoked == 1
    # The losing attempt never wrote its successor ("refresh-3").
    assert ledger.get_by_token("refresh-3") is None
    assert ledger.get_by_token(contested.refresh_token).replaced_by_token == "winner-token"
    assert (
        ledger.get_by_token(other_device.refresh_token).revocation_reason
        == RevocationReason.REUSE_DETECTED
    )
