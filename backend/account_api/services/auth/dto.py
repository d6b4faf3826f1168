# account_api/services/auth/dto.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from account_api.models.account import AuthProvider
from account_api.services.tokens.dto import TokenPairOut

# ---------------------------- Input DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class RegisterIn:
    """
    Input DTO for local registration.

    :param email: Account email (normalized by the model).
    :type email: str
    :param password: Raw password (hashed by the model).
    :type password: str
    """

    email: str
    password: str


@dataclass(frozen=True, slots=True)
class LoginIn:
    """
    Input DTO for password login.

    :param email: Account email.
    :type email: str
    :param password: Raw password (to be verified).
    :type password: str
    """

    email: str
    password: str


@dataclass(frozen=True, slots=True)
class ProviderLoginIn:
    """
    An identity already verified by an external provider.

    :param provider: Issuing provider; ``local`` is rejected.
    :type provider: AuthProvider
    :param provider_user_id: Stable subject id at the provider.
    :type provider_user_id: str
    :param email: Email reported by the provider.
    :type email: str
    """

    provider: AuthProvider
    provider_user_id: str
    email: str


# --------------------------- Output DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class AccountOut:
    """Public-safe account view."""

    id: UUID
    email: str
    provider: AuthProvider
    is_active: bool
    created_at: datetime | None = None


@dataclass(frozen=True, slots=True)
class AuthOut:
    """
    Account plus the token pair issued for it.

    :param account: Authenticated account.
    :type account: AccountOut
    :param tokens: Newly issued pair.
    :type tokens: TokenPairOut
    :param created: ``True`` when the account was created by this call.
    :type created: bool
    """

    account: AccountOut
    tokens: TokenPairOut
    created: bool = False
