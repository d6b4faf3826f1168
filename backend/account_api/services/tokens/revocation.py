# account_api/services/tokens/revocation.py
from __future__ import annotations

import logging
from datetime import datetime
from uuid import UUID

from account_api.models.refresh_token import RevocationReason
from account_api.services._shared.base import BaseService
from account_api.services._shared.ports import Clock, SystemClock
from account_api.uow.sqlalchemy_uow import SQLAlchemyUnitOfWork

log = logging.getLogger(__name__)


class RevocationService(BaseService):
    """
    Explicit refresh-token invalidation.

    Revoking is idempotent: unknown and already revoked tokens are treated as
    already satisfying the request. Only storage failures escape.
    """

    def __init__(self, *, clock: Clock | None = None) -> None:
        super().__init__()
        self.clock = clock or SystemClock()

    def revoke_one(self, token: str, reason: str = RevocationReason.MANUAL_LOGOUT) -> None:
        """
        Revoke a single refresh token.

        :param token: Token string presented by the client.
        :type token: str
        :param reason: Value stored as ``revocation_reason``.
        :type reason: str
        """
        with self.rw_uow() as uow:
            changed = uow.refresh_tokens.revoke(token, reason=reason, now=self.clock.now())

        if changed:
            log.info("Refresh token revoked", extra={"event": "refresh_token.revoked", "reason": reason})

    def revoke_all_for_account(
        self, account_id: UUID, reason: str = RevocationReason.MANUAL_LOGOUT
    ) -> int:
        """
        Revoke every active refresh token of an account.

        :param account_id: Account whose sessions are ended.
        :type account_id: UUID
        :param reason: Value stored as ``revocation_reason``.
        :type reason: str
        :returns: Number of tokens revoked.
        :rtype: int
        """
        with self.rw_uow() as uow:
            revoked = self.revoke_all_within(uow, account_id, reason=reason, now=self.clock.now())

        log.info(
            "Revoked account sessions",
            extra={
                "event": "refresh_token.revoked_all",
                "account_id": str(account_id),
                "revoked": revoked,
                "reason": reason,
            },
        )
        return revoked

    @staticmethod
    def revoke_all_within(
        uow: SQLAlchemyUnitOfWork, account_id: UUID, *, reason: str, now: datetime
    ) -> int:
        """Cascade step used inside a caller-owned Unit of Work."""
        return uow.refresh_tokens.revoke_active_for_account(account_id, reason=reason, now=now)
