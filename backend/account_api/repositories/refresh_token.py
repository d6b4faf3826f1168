"""Refresh token ledger repository.

Every lifecycle transition is a conditional ``UPDATE`` guarded by
``revoked_at IS NULL``; a row can therefore leave the active state exactly
once no matter how many writers race for it.
"""

from __future__ import annotations

from datetime import datetime
from typing import cast
from uuid import UUID

from sqlalchemy import select

from account_api.models.base import to_utc
from account_api.models.refresh_token import RefreshToken, RevocationReason
from account_api.repositories.base import BaseRepository


class RefreshTokenRepository(BaseRepository[RefreshToken]):
    """Persistence-only access to the ``refresh_tokens`` ledger."""

    model = RefreshToken

    # ---------------------------- Lookups ----------------------------

    def get_by_token(self, token: str) -> RefreshToken | None:
        """Fetch a ledger row by its exact token string.

        :param token: Opaque refresh token presented by a client.
        :type token: str
        :returns: Ledger row or ``None`` when the string was never issued.
        :rtype: RefreshToken | None
        """
        stmt = select(RefreshToken).where(RefreshToken.token == token)
        return cast(RefreshToken | None, self.session.execute(stmt).scalars().first())

    def list_active_for_account(self, account_id: UUID, *, now: datetime) -> list[RefreshToken]:
        """Return active rows for ``account_id``, most recently issued first."""
        stmt = (
            select(RefreshToken)
            .where(
                RefreshToken.account_id == account_id,
                RefreshToken.revoked_at.is_(None),
                RefreshToken.expires_at > to_utc(now),
            )
            .order_by(RefreshToken.issued_at.desc(), RefreshToken.id.asc())
        )
        return list(self.session.execute(stmt).scalars().all())

    def get_successor(self, row: RefreshToken) -> RefreshToken | None:
        """Follow ``replaced_by_token`` one hop along the rotation chain."""
        if row.replaced_by_token is None:
            return None
        return self.get_by_token(row.replaced_by_token)

    # ---------------------------- Transitions ----------------------------

    def mark_rotated(self, token_id: UUID, *, successor: str, now: datetime) -> bool:
        """Retire ``token_id`` in favour of ``successor`` if it is still unrevoked.

        :param token_id: Ledger row to retire.
        :type token_id: UUID
        :param successor: Token string of the replacement row.
        :type successor: str
        :param now: Rotation instant.
        :type now: datetime
        :returns: ``True`` when this call performed the transition; ``False``
            when another writer revoked or rotated the row first.
        :rtype: bool
        """
        changed = self._conditional_update(
            RefreshToken.id == token_id,
            RefreshToken.revoked_at.is_(None),
            values={
                "revoked_at": to_utc(now),
                "replaced_by_token": successor,
                "revocation_reason": RevocationReason.ROTATED,
            },
        )
        return changed == 1

    def revoke(self, token: str, *, reason: str, now: datetime) -> bool:
        """Revoke a single row by token string when it is not yet revoked.

        :returns: ``True`` when a row changed; ``False`` for unknown or
            already revoked tokens.
        :rtype: bool
        """
        changed = self._conditional_update(
            RefreshToken.token == token,
            RefreshToken.revoked_at.is_(None),
            values={"revoked_at": to_utc(now), "revocation_reason": reason},
        )
        return changed == 1

    def revoke_active_for_account(self, account_id: UUID, *, reason: str, now: datetime) -> int:
        """Revoke every active row of ``account_id``.

        Already revoked and already expired rows are left untouched.

        :param account_id: Owning account.
        :type account_id: UUID
        :param reason: Value stored in ``revocation_reason``.
        :type reason: str
        :param now: Revocation instant; also the expiry cut-off.
        :type now: datetime
        :returns: Number of rows revoked.
        :rtype: int
        """
        instant = to_utc(now)
        return self._conditional_update(
            RefreshToken.account_id == account_id,
            RefreshToken.revoked_at.is_(None),
            RefreshToken.expires_at > instant,
            values={"revoked_at": instant, "revocation_reason": reason},
        )
