# account_api/services/auth/service.py
"""
AuthService
===========

Account-facing entry points built on top of the token core:

- Local registration and password login.
- Login with an identity already verified by an external provider.
- Refresh (delegates to :class:`RotationEngine`) and logout.
- Session and profile queries for the authenticated account.
"""

from __future__ import annotations

import logging
from uuid import UUID

from sqlalchemy.exc import IntegrityError

from account_api.models.account import Account, AuthProvider
from account_api.models.refresh_token import RevocationReason
from account_api.services._shared.base import BaseService
from account_api.services._shared.errors import (
    AccountNotFoundError,
    ConflictError,
    InvalidCredentialsError,
    ServiceError,
    violates,
)
from account_api.services.auth.dto import (
    AccountOut,
    AuthOut,
    LoginIn,
    ProviderLoginIn,
    RegisterIn,
)
from account_api.services.tokens.dto import ClientInfo, SessionOut, TokenPairOut
from account_api.services.tokens.issuer import TokenIssuer
from account_api.services.tokens.revocation import RevocationService
from account_api.services.tokens.rotation import RotationEngine

log = logging.getLogger(__name__)

EMAIL_CONSTRAINT = "uq_accounts_provider_email"


class AuthService(BaseService):
    """
    Authentication lifecycle service (register / login / refresh / logout).

    :param issuer: Issues token pairs; its clock is shared with the others.
    :param rotation: Refresh rotation engine (built from ``issuer`` if omitted).
    :param revocation: Revocation service (built from ``issuer`` if omitted).
    """

    def __init__(
        self,
        *,
        issuer: TokenIssuer,
        rotation: RotationEngine | None = None,
        revocation: RevocationService | None = None,
    ) -> None:
        super().__init__()
        self.issuer = issuer
        self.clock = issuer.clock
        self.revocation = revocation or RevocationService(clock=issuer.clock)
        self.rotation = rotation or RotationEngine(issuer=issuer, revocation=self.revocation)

    # ------------------------------------------------------------------ #
    # Registration / login
    # ------------------------------------------------------------------ #

    def register(self, dto: RegisterIn, *, client: ClientInfo | None = None) -> AuthOut:
        """
        Create a local account and sign it in.

        The account and its first refresh token are written in one
        transaction; if issuing fails no account is left behind.

        :param dto: Registration input.
        :type dto: RegisterIn
        :param client: Request metadata stored with the refresh token.
        :type client: ClientInfo | None
        :returns: The new account and its first token pair.
        :rtype: AuthOut
        :raises ConflictError: If the email is already registered locally.
        """
        with self.rw_uow() as uow:
            repo = uow.accounts
            if repo.exists_by_email(dto.email):
                raise ConflictError("Account", "email already in use")
            try:
                account = repo.add(
                    Account(email=dto.email, password=dto.password, provider=AuthProvider.LOCAL)
                )
            except IntegrityError as exc:
                # Lost a race against a concurrent registration.
                if violates(exc, EMAIL_CONSTRAINT, columns=("accounts.provider", "accounts.email")):
                    raise ConflictError("Account", "email already in use") from exc
                raise
            account_out = self._to_account_out(account)
            tokens = self.issuer.issue_within(uow, account, now=self.clock.now(), client=client)

        log.info(
            "Account registered",
            extra={"event": "account.registered", "account_id": str(account_out.id)},
        )
        return AuthOut(account=account_out, tokens=tokens, created=True)

    def login(self, dto: LoginIn, *, client: ClientInfo | None = None) -> AuthOut:
        """
        Authenticate credentials and issue a fresh token pair.

        :param dto: Login input.
        :type dto: LoginIn
        :returns: Account and token pair.
        :rtype: AuthOut
        :raises InvalidCredentialsError: Unknown email, wrong password,
            disabled account, or account without a password.
        """
        with self.ro_uow() as uow:
            account = uow.accounts.get_by_email(dto.email)
            if account is None or not account.is_active or not account.verify_password(dto.password):
                raise InvalidCredentialsError()
            account_out = self._to_account_out(account)

        tokens = self.issuer.issue_pair(account_out.id, client=client)
        return AuthOut(account=account_out, tokens=tokens)

    def login_with_provider(
        self, dto: ProviderLoginIn, *, client: ClientInfo | None = None
    ) -> AuthOut:
        """
        Sign in with an identity verified by an external provider.

        Resolution order: an account already linked to
        ``(provider, provider_user_id)``; else an unlinked account with the same
        ``(provider, email)``, which gets linked; else a new account.

        :param dto: Verified provider identity.
        :type dto: ProviderLoginIn
        :returns: Account and token pair; ``created`` tells whether the
            account is new.
        :rtype: AuthOut
        :raises ServiceError: For the ``local`` provider.
        :raises ConflictError: If the email is linked to another provider user.
        :raises AccountNotFoundError: If the resolved account is disabled.
        """
        if dto.provider is AuthProvider.LOCAL:
            raise ServiceError("Local accounts must sign in with a password")

        created = False
        with self.rw_uow() as uow:
            repo = uow.accounts
            account = repo.get_by_provider_identity(dto.provider, dto.provider_user_id)
            if account is None:
                account = repo.get_by_email(dto.email, provider=dto.provider)
                if account is not None:
                    if account.provider_user_id not in (None, dto.provider_user_id):
                        raise ConflictError("Account", "email linked to another provider identity")
                    repo.update(account, provider_user_id=dto.provider_user_id)
                else:
                    account = repo.add(
                        Account(
                            email=dto.email,
                            provider=dto.provider,
                            provider_user_id=dto.provider_user_id,
                        )
                    )
                    created = True
            if not account.is_active:
                raise AccountNotFoundError(account.id)
            account_out = self._to_account_out(account)
            tokens = self.issuer.issue_within(uow, account, now=self.clock.now(), client=client)

        return AuthOut(account=account_out, tokens=tokens, created=created)

    # ------------------------------------------------------------------ #
    # Refresh / logout
    # ------------------------------------------------------------------ #

    def refresh(self, refresh_token: str, *, client: ClientInfo | None = None) -> TokenPairOut:
        """Rotate ``refresh_token``; see :meth:`RotationEngine.rotate`."""
        return self.rotation.rotate(refresh_token, client=client)

    def logout(self, refresh_token: str) -> None:
        """End one session. Unknown or already revoked tokens are accepted."""
        self.revocation.revoke_one(refresh_token, RevocationReason.MANUAL_LOGOUT)

    def logout_all(self, account_id: UUID) -> int:
        """End every session of ``account_id`` and return how many were active."""
        return self.revocation.revoke_all_for_account(account_id, RevocationReason.MANUAL_LOGOUT)

    # ------------------------------------------------------------------ #
    # Queries
    # ------------------------------------------------------------------ #

    def get_account(self, account_id: UUID) -> AccountOut:
        """
        Return the active account ``account_id``.

        :raises AccountNotFoundError: If missing or disabled.
        """
        with self.ro_uow() as uow:
            account = uow.accounts.get_active(account_id)
            if account is None:
                raise AccountNotFoundError(account_id)
            return self._to_account_out(account)

    def list_sessions(self, account_id: UUID) -> list[SessionOut]:
        """
        List active refresh sessions, newest first.

        :param account_id: Owner of the sessions.
        :type account_id: UUID
        :returns: Session metadata (never the token strings).
        :rtype: list[SessionOut]
        :raises AccountNotFoundError: If the account is missing or disabled.
        """
        with self.ro_uow() as uow:
            if uow.accounts.get_active(account_id) is None:
                raise AccountNotFoundError(account_id)
            rows = uow.refresh_tokens.list_active_for_account(account_id, now=self.clock.now())
            return [
                SessionOut(
                    id=row.id,
                    issued_at=row.issued_at,
                    expires_at=row.expires_at,
                    ip_address=row.ip_address,
                    user_agent=row.user_agent,
                )
                for row in rows
            ]

    # ------------------------------------------------------------------ #
    # Mapping
    # ------------------------------------------------------------------ #

    @staticmethod
    def _to_account_out(account: Account) -> AccountOut:
        return AccountOut(
            id=account.id,
            email=account.email,
            provider=account.provider,
            is_active=account.is_active,
            created_at=account.created_at,
        )
