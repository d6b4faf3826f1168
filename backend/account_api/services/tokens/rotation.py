# account_api/services/tokens/rotation.py
"""Refresh token rotation with reuse detection.

A refresh token can be exchanged exactly once. Presenting a token that has
already been rotated or revoked is treated as a replay: every active session
of the owning account is revoked and the caller must sign in again.

The transition of the presented row is a conditional ``UPDATE`` guarded by
``revoked_at IS NULL``. When two callers race with the same token, the
database lets one of them through; the other sees zero affected rows and
takes the replay path, and no second successor is ever written.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum, auto
from uuid import UUID

from account_api.models.refresh_token import RevocationReason
from account_api.services._shared.base import BaseService
from account_api.services._shared.errors import (
    AccountNotFoundError,
    InvalidTokenError,
    TokenExpiredError,
    TokenReuseDetectedError,
)
from account_api.services.tokens.dto import ClientInfo, TokenPairOut
from account_api.services.tokens.issuer import TokenIssuer
from account_api.services.tokens.revocation import RevocationService

log = logging.getLogger(__name__)


class RotationResult(Enum):
    """Outcome of a rotation attempt, decided inside the transaction."""

    OK = auto()
    NOT_FOUND = auto()
    EXPIRED = auto()
    REUSED = auto()
    ACCOUNT_MISSING = auto()


@dataclass(slots=True)
class _Attempt:
    """Outcome of ``_attempt``; ``account_id`` is set for every result but ``NOT_FOUND``."""

    result: RotationResult
    account_id: UUID | None = None
    revoked: int = 0
    pair: TokenPairOut | None = None


class RotationEngine(BaseService):
    """
    Exchanges a refresh token for a new pair.

    :param issuer: Mints the successor refresh token and the access token.
    :param revocation: Performs the reuse cascade.
    """

    def __init__(self, *, issuer: TokenIssuer, revocation: RevocationService | None = None) -> None:
        super().__init__()
        self.issuer = issuer
        self.clock = issuer.clock
        self.revocation = revocation or RevocationService(clock=issuer.clock)

    def rotate(self, presented_token: str, *, client: ClientInfo | None = None) -> TokenPairOut:
        """
        Rotate ``presented_token``.

        Checks run in this order: unknown token, already revoked (reuse),
        expired, account missing or disabled. Only a token passing all of them
        is retired and replaced.

        :param presented_token: Refresh token sent by the client.
        :type presented_token: str
        :param client: Request metadata stored on the successor.
        :type client: ClientInfo | None
        :returns: The successor pair.
        :rtype: TokenPairOut
        :raises InvalidTokenError: The token was never issued.
        :raises TokenReuseDetectedError: The token was already consumed; all
            active sessions of the account have been revoked.
        :raises TokenExpiredError: The token is past ``expires_at``.
        :raises AccountNotFoundError: The owner is missing or disabled.
        """
        with self.rw_uow() as uow:
            attempt = self._attempt(uow, presented_token, client)

        # Raised after the UoW committed so the reuse cascade is persisted.
        if attempt.result is RotationResult.OK and attempt.pair is not None:
            log.info(
                "Refresh token rotated",
                extra={"event": "refresh_token.rotated", "account_id": str(attempt.account_id)},
            )
            return attempt.pair
        if attempt.result is RotationResult.REUSED and attempt.account_id is not None:
            log.warning(
                "Refresh token reuse detected; account sessions revoked",
                extra={
                    "event": "refresh_token.reuse_detected",
                    "account_id": str(attempt.account_id),
                    "revoked": attempt.revoked,
                },
            )
            raise TokenReuseDetectedError(attempt.account_id, attempt.revoked)
        if attempt.result is RotationResult.EXPIRED:
            raise TokenExpiredError()
        if attempt.result is RotationResult.ACCOUNT_MISSING and attempt.account_id is not None:
            raise AccountNotFoundError(attempt.account_id)
        raise InvalidTokenError()

    # ------------------------------------------------------------------ #
    # Internals
    # ------------------------------------------------------------------ #

    def _attempt(self, uow, presented_token: str, client: ClientInfo | None) -> _Attempt:
        now = self.clock.now()
        repo = uow.refresh_tokens

        row = repo.get_by_token(presented_token) if presented_token else None
        if row is None:
            return _Attempt(RotationResult.NOT_FOUND)

        account_id = row.account_id
        if row.is_revoked:
            return self._reused(uow, account_id, now)

        if row.is_expired_at(now):
            return _Attempt(RotationResult.EXPIRED, account_id=account_id)

        account = uow.accounts.get_active(account_id)
        if account is None:
            return _Attempt(RotationResult.ACCOUNT_MISSING, account_id=account_id)

        successor = self.issuer.build_refresh(account_id, now=now, client=client)
        if not repo.mark_rotated(row.id, successor=successor.token, now=now):
            # Another caller consumed the token between our read and our write.
            return self._reused(uow, account_id, now)

        repo.add(successor)
        pair = TokenPairOut(
            access_token=self.issuer.mint_access(account, now=now),
            refresh_token=successor.token,
            refresh_expires_at=successor.expires_at,
        )
        return _Attempt(RotationResult.OK, account_id=account_id, pair=pair)

    def _reused(self, uow, account_id: UUID, now) -> _Attempt:
        revoked = self.revocation.revoke_all_within(
            uow, account_id, reason=RevocationReason.REUSE_DETECTED, now=now
        )
        return _Attempt(RotationResult.REUSED, account_id=account_id, revoked=revoked)
