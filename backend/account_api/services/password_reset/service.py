# account_api/services/password_reset/service.py
"""
PasswordResetService
====================

Single-use, time-boxed password reset:

- ``request_reset`` stores a random token for an active local account and
  hands it to a post-commit callback (delivery is not handled here).
- ``reset_password`` consumes the token once, sets the new password and ends
  every active session of the account.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import timedelta

from account_api.models.password_reset import PasswordResetRequest
from account_api.models.refresh_token import RevocationReason
from account_api.services._shared.base import BaseService
from account_api.services._shared.errors import InvalidTokenError, TokenExpiredError
from account_api.services._shared.ports import (
    Clock,
    RandomSource,
    SecretsRandomSource,
    SystemClock,
)
from account_api.services.password_reset.dto import PasswordResetIssuedOut, PasswordResetOut
from account_api.services.tokens.revocation import RevocationService

log = logging.getLogger(__name__)


class PasswordResetService(BaseService):
    """
    Orchestrates password reset requests.

    :param clock: Source of "now".
    :param random_source: Generator for reset tokens.
    :param ttl: Lifetime of a reset request.
    """

    def __init__(
        self,
        *,
        clock: Clock | None = None,
        random_source: RandomSource | None = None,
        ttl: timedelta = timedelta(minutes=60),
    ) -> None:
        super().__init__()
        self.clock = clock or SystemClock()
        self.random = random_source or SecretsRandomSource()
        self.ttl = ttl

    def request_reset(
        self,
        email: str,
        *,
        on_issued: Callable[[PasswordResetIssuedOut], None] | None = None,
    ) -> PasswordResetIssuedOut | None:
        """
        Create a reset request for ``email``.

        Unknown, disabled and provider-only accounts yield ``None`` so callers
        cannot discover which addresses are registered.

        :param email: Address of a local account.
        :type email: str
        :param on_issued: Optional callback executed **after** commit.
        :type on_issued: Callable[[PasswordResetIssuedOut], None] | None
        :returns: The issued request, or ``None``.
        :rtype: PasswordResetIssuedOut | None
        """
        now = self.clock.now()
        with self.rw_uow() as uow:
            account = uow.accounts.get_by_email(email)
            if account is None or not account.is_active:
                return None
            req = uow.password_resets.add(
                PasswordResetRequest(
                    token=self.random.token(),
                    account_id=account.id,
                    created_at=now,
                    expires_at=now + self.ttl,
                )
            )
            issued = PasswordResetIssuedOut(
                account_id=account.id,
                email=account.email,
                token=req.token,
                expires_at=req.expires_at,
            )

        log.info(
            "Password reset requested",
            extra={"event": "password_reset.requested", "account_id": str(issued.account_id)},
        )
        if callable(on_issued):
            try:
                on_issued(issued)
            except Exception:
                # The request is committed; delivery can be retried by asking again.
                log.exception(
                    "Password reset delivery hook failed",
                    extra={"event": "password_reset.hook_failed"},
                )
        return issued

    def reset_password(self, token: str, new_password: str) -> PasswordResetOut:
        """
        Consume ``token`` and set ``new_password``.

        :param token: Reset token received out of band.
        :type token: str
        :param new_password: Raw password (hashed by the model).
        :type new_password: str
        :returns: The account and how many sessions were revoked.
        :rtype: PasswordResetOut
        :raises InvalidTokenError: Unknown or already used token, or the
            account is no longer active.
        :raises TokenExpiredError: The request is past ``expires_at``.
        """
        now = self.clock.now()
        with self.rw_uow() as uow:
            req = uow.password_resets.get_by_token(token) if token else None
            if req is None or req.used_at is not None:
                raise InvalidTokenError("Password reset token is invalid")
            if req.is_expired_at(now):
                raise TokenExpiredError("Password reset token has expired")

            account = uow.accounts.get_active(req.account_id)
            if account is None:
                raise InvalidTokenError("Password reset token is invalid")
            if not uow.password_resets.mark_used(req.id, now=now):
                raise InvalidTokenError("Password reset token is invalid")

            uow.accounts.update_password(account, new_password)
            revoked = RevocationService.revoke_all_within(
                uow, account.id, reason=RevocationReason.PASSWORD_RESET, now=now
            )
            result = PasswordResetOut(account_id=account.id, revoked_sessions=revoked)

        log.info(
            "Password reset completed",
            extra={
                "event": "password_reset.completed",
                "account_id": str(result.account_id),
                "revoked": result.revoked_sessions,
            },
        )
        return result
