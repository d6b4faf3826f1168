# account_api/services/tokens/dto.py
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any
from uuid import UUID

# ---------------------------- Input DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class ClientInfo:
    """
    Request metadata recorded on a refresh token when it is created.

    :param ip_address: Remote address of the caller.
    :type ip_address: str | None
    :param user_agent: ``User-Agent`` header, truncated to the column size.
    :type user_agent: str | None
    """

    ip_address: str | None = None
    user_agent: str | None = None


# --------------------------- Output DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class TokenPairOut:
    """
    Output DTO with access and refresh tokens.

    :param access_token: Signed access JWT.
    :type access_token: str
    :param refresh_token: Opaque refresh token (ledger key).
    :type refresh_token: str
    :param refresh_expires_at: Expiry of ``refresh_token`` (UTC).
    :type refresh_expires_at: datetime
    """

    access_token: str
    refresh_token: str
    refresh_expires_at: datetime


@dataclass(frozen=True, slots=True)
class SessionOut:
    """Metadata of one active refresh token. Never carries the token itself."""

    id: UUID
    issued_at: datetime
    expires_at: datetime
    ip_address: str | None
    user_agent: str | None


DEFAULT_ACCESS_EXPIRES = timedelta(minutes=15)
DEFAULT_REFRESH_EXPIRES = timedelta(days=7)


# ------------------------------ Config DTO -------------------------------- #


@dataclass(frozen=True, slots=True)
class AuthTokenConfig:
    """
    Token emission configuration.

    :param access_expires: Access token lifetime.
    :type access_expires: timedelta
    :param refresh_expires: Refresh token lifetime.
    :type refresh_expires: timedelta
    """

    access_expires: timedelta = DEFAULT_ACCESS_EXPIRES
    refresh_expires: timedelta = DEFAULT_REFRESH_EXPIRES

    @classmethod
    def from_mapping(cls, config: Mapping[str, Any]) -> AuthTokenConfig:
        """Build from Flask config keys, keeping defaults for missing ones."""
        access = config.get("JWT_ACCESS_TOKEN_EXPIRES") or DEFAULT_ACCESS_EXPIRES
        if not isinstance(access, timedelta):
            access = timedelta(seconds=int(access))
        refresh_days = config.get("REFRESH_TOKEN_TTL_DAYS")
        refresh = timedelta(days=int(refresh_days)) if refresh_days else DEFAULT_REFRESH_EXPIRES
        return cls(access_expires=access, refresh_expires=refresh)
