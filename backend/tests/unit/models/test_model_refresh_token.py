"""Tests for the RefreshToken ledger model."""

from __future__ import annotations

from datetime import timedelta

from account_api.models.refresh_token import RefreshToken, RevocationReason
from sqlalchemy import select
from tests.factories.refresh_token import RefreshTokenFactory
from tests.helpers.clock import NOW


class TestRefreshToken:
    def test_state_helpers(self):
        row = RefreshTokenFactory.build(issued_at=NOW, expires_at=NOW + timedelta(days=1))

        assert row.is_revoked is False
        assert row.is_active_at(NOW) is True
        assert row.is_expired_at(NOW + timedelta(days=1)) is True  # boundary counts as expired
        assert row.is_active_at(NOW + timedelta(days=1)) is False

    def test_revoked_row_is_not_active(self):
        row = RefreshTokenFactory.build(revoked=True)
        assert row.is_revoked is True
        assert row.is_active_at(NOW) is False

    def test_expiry_check_accepts_naive_now(self):
        row = RefreshTokenFactory.build()
        naive = (NOW + timedelta(days=8)).replace(tzinfo=None)
        assert row.is_expired_at(naive) is True

    def test_timestamps_round_trip_as_utc(self, session):
        row = RefreshTokenFactory()
        session.expire_all()

        loaded = session.get(RefreshToken, row.id)
        assert loaded.issued_at == NOW
        assert loaded.issued_at.tzinfo is not None
        assert loaded.expires_at - loaded.issued_at == timedelta(days=7)

    def test_revocation_reasons_fit_column(self):
        reasons = [
            RevocationReason.ROTATED,
            RevocationReason.MANUAL_LOGOUT,
            RevocationReason.REUSE_DETECTED,
            RevocationReason.EXPIRED_CLEANUP,
            RevocationReason.PASSWORD_RESET,
        ]
        assert len(set(reasons)) == len(reasons)
        assert all(len(r) <= RefreshToken.__table__.c.revocation_reason.type.length for r in reasons)

    def test_deleting_account_cascades_to_ledger(self, session):
        row = RefreshTokenFactory()
        account = row.account
        token_id = row.id

        session.delete(account)
        session.commit()
        session.expire_all()

        remaining = session.execute(select(RefreshToken).where(RefreshToken.id == token_id))
        assert remaining.scalar_one_or_none() is None
