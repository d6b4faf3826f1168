"""Public exports for Marshmallow schemas used across the API."""

from __future__ import annotations

from .auth import (
    AccountSchema,
    LoginSchema,
    PasswordResetConfirmSchema,
    PasswordResetRequestSchema,
    RefreshTokenSchema,
    RegisterSchema,
    SessionSchema,
    TokenPairSchema,
)

__all__ = [
    "AccountSchema",
    "LoginSchema",
    "PasswordResetConfirmSchema",
    "PasswordResetRequestSchema",
    "RefreshTokenSchema",
    "RegisterSchema",
    "SessionSchema",
    "TokenPairSchema",
]
