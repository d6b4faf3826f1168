# account_api/services/password_reset/dto.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID


@dataclass(frozen=True, slots=True)
class PasswordResetIssuedOut:
    """
    A reset request ready to be delivered to the account owner.

    :param account_id: Account the request belongs to.
    :type account_id: UUID
    :param email: Delivery address.
    :type email: str
    :param token: Single-use reset token.
    :type token: str
    :param expires_at: Instant after which the token is rejected (UTC).
    :type expires_at: datetime
    """

    account_id: UUID
    email: str
    token: str
    expires_at: datetime


@dataclass(frozen=True, slots=True)
class PasswordResetOut:
    """Result of a completed reset."""

    account_id: UUID
    revoked_sessions: int
