"""Account repository: identity lookups used by the token core and auth flows."""

from __future__ import annotations

from typing import cast
from uuid import UUID

from sqlalchemy import select

from account_api.models.account import Account, AuthProvider
from account_api.repositories.base import BaseRepository


class AccountRepository(BaseRepository[Account]):
    """Persistence-only repository for :class:`Account`.

    The token core only ever reads accounts (``get_active``); creation and
    password changes are driven by the auth and password reset services.
    """

    model = Account

    def _updatable_fields(self):
        return {"email", "provider_user_id", "is_active"}

    # ---------------------------- Lookup helpers ----------------------------

    def get_active(self, account_id: UUID) -> Account | None:
        """Return the account only when it exists and is not disabled.

        :param account_id: Account identifier.
        :type account_id: UUID
        :returns: Active account or ``None``.
        :rtype: Account | None
        """
        stmt = select(Account).where(Account.id == account_id, Account.is_active.is_(True))
        return cast(Account | None, self.session.execute(stmt).scalars().first())

    def get_by_email(
        self, email: str, *, provider: AuthProvider = AuthProvider.LOCAL
    ) -> Account | None:
        """Fetch an account by normalized email within one provider.

        :param email: Email address to normalise and search.
        :type email: str
        :param provider: Provider namespace for the email. Defaults to local.
        :type provider: AuthProvider
        :returns: Account or ``None`` when not found.
        :rtype: Account | None
        """
        stmt = select(Account).where(
            Account.provider == provider,
            Account.email == email.lower().strip(),
        )
        return cast(Account | None, self.session.execute(stmt).scalars().first())

    def get_by_provider_identity(
        self, provider: AuthProvider, provider_user_id: str
    ) -> Account | None:
        """Fetch an account linked to an external provider identity."""
        stmt = select(Account).where(
            Account.provider == provider,
            Account.provider_user_id == provider_user_id,
        )
        return cast(Account | None, self.session.execute(stmt).scalars().first())

    def exists_by_email(self, email: str, *, provider: AuthProvider = AuthProvider.LOCAL) -> bool:
        stmt = select(Account.id).where(
            Account.provider == provider,
            Account.email == email.lower().strip(),
        )
        return bool(self.session.execute(stmt).first())

    # ---------------------------- Password ops ----------------------------

    def update_password(self, account: Account, new_password: str) -> None:
        """Hash and store a new password for ``account`` and flush.

        :param account: Account to mutate.
        :type account: Account
        :param new_password: Raw password; the model handles hashing.
        :type new_password: str
        """
        account.password = new_password
        self.flush()
