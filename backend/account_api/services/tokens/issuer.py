# account_api/services/tokens/issuer.py
from __future__ import annotations

import logging
from datetime import datetime
from typing import Any
from uuid import UUID

from account_api.models.account import Account
from account_api.models.refresh_token import RefreshToken
from account_api.services._shared.base import BaseService
from account_api.services._shared.errors import AccountNotFoundError
from account_api.services._shared.ports import (
    Clock,
    RandomSource,
    SecretsRandomSource,
    SystemClock,
    TokenProvider,
)
from account_api.services.tokens.dto import AuthTokenConfig, ClientInfo, TokenPairOut
from account_api.uow.sqlalchemy_uow import SQLAlchemyUnitOfWork

log = logging.getLogger(__name__)

USER_AGENT_MAX = 255


class TokenIssuer(BaseService):
    """
    Mints access/refresh pairs for an account.

    Every refresh token handed out is first written to the ledger inside the
    caller's Unit of Work; the access token is stateless and never stored.
    """

    def __init__(
        self,
        *,
        token_provider: TokenProvider,
        clock: Clock | None = None,
        random_source: RandomSource | None = None,
        token_cfg: AuthTokenConfig | None = None,
    ) -> None:
        """
        :param token_provider: Adapter that signs access tokens.
        :param clock: Source of "now" for ledger timestamps.
        :param random_source: Generator for refresh token strings.
        :param token_cfg: Access/refresh lifetimes.
        """
        super().__init__()
        self.tokens = token_provider
        self.clock = clock or SystemClock()
        self.random = random_source or SecretsRandomSource()
        self.cfg = token_cfg or AuthTokenConfig()

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #

    def issue_pair(self, account_id: UUID, *, client: ClientInfo | None = None) -> TokenPairOut:
        """
        Issue a brand-new token pair (login, registration, provider login).

        :param account_id: Account the pair is issued to.
        :type account_id: UUID
        :param client: Request metadata stored with the refresh token.
        :type client: ClientInfo | None
        :returns: Fresh access/refresh pair.
        :rtype: TokenPairOut
        :raises AccountNotFoundError: If the account is missing or disabled.
        """
        now = self.clock.now()
        with self.rw_uow() as uow:
            account = uow.accounts.get_active(account_id)
            if account is None:
                raise AccountNotFoundError(account_id)
            pair = self.issue_within(uow, account, now=now, client=client)

        log.info(
            "Issued token pair",
            extra={"event": "refresh_token.issued", "account_id": str(account_id)},
        )
        return pair

    # ------------------------------------------------------------------ #
    # Building blocks shared with the rotation engine
    # ------------------------------------------------------------------ #

    def issue_within(
        self,
        uow: SQLAlchemyUnitOfWork,
        account: Account,
        *,
        now: datetime,
        client: ClientInfo | None = None,
    ) -> TokenPairOut:
        """
        Mint a pair for ``account`` inside the caller's ``uow``.

        The refresh token row commits or rolls back together with whatever
        else the unit wrote, such as the account itself on registration.

        :returns: Fresh access/refresh pair.
        :rtype: TokenPairOut
        """
        row = self.mint_refresh(uow, account.id, now=now, client=client)
        return TokenPairOut(
            access_token=self.mint_access(account, now=now),
            refresh_token=row.token,
            refresh_expires_at=row.expires_at,
        )

    def build_refresh(
        self, account_id: UUID, *, now: datetime, client: ClientInfo | None = None
    ) -> RefreshToken:
        """Return an unsaved, active ledger row for ``account_id``."""
        client = client or ClientInfo()
        return RefreshToken(
            token=self.random.token(),
            account_id=account_id,
            issued_at=now,
            expires_at=now + self.cfg.refresh_expires,
            revoked_at=None,
            replaced_by_token=None,
            revocation_reason=None,
            ip_address=client.ip_address,
            user_agent=client.user_agent[:USER_AGENT_MAX] if client.user_agent else None,
        )

    def mint_refresh(
        self,
        uow: SQLAlchemyUnitOfWork,
        account_id: UUID,
        *,
        now: datetime,
        client: ClientInfo | None = None,
    ) -> RefreshToken:
        """
        Insert a new active refresh token within ``uow``.

        :returns: The flushed ledger row.
        :rtype: RefreshToken
        """
        return uow.refresh_tokens.add(self.build_refresh(account_id, now=now, client=client))

    def mint_access(self, account: Account, *, now: datetime | None = None) -> str:
        """Sign an access token whose subject is ``account.id``.

        :param now: Issue instant; defaults to the injected clock.
        """
        claims: dict[str, Any] = {
            "provider": account.provider.value,
            "email": account.email,
        }
        return self.tokens.create_access_token(
            identity=str(account.id),
            additional_claims=claims,
            expires_delta=self.cfg.access_expires,
            issued_at=now or self.clock.now(),
        )
