"""Repository package exposing persistence-layer access for all domain models."""

from __future__ import annotations

from account_api.repositories.account import AccountRepository
from account_api.repositories.base import BaseRepository
from account_api.repositories.password_reset import PasswordResetRepository
from account_api.repositories.refresh_token import RefreshTokenRepository

__all__ = [
    "BaseRepository",
    "AccountRepository",
    "PasswordResetRepository",
    "RefreshTokenRepository",
]
