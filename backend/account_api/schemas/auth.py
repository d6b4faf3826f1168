"""Authentication-related Marshmallow schemas."""

from __future__ import annotations

from marshmallow import Schema, fields, validate

from account_api.models.account import AuthProvider


class RegisterSchema(Schema):
    """Input payload for local account registration."""

    email = fields.Email(required=True, validate=validate.Length(max=255))
    password = fields.String(required=True, validate=validate.Length(min=8, max=128))


class LoginSchema(Schema):
    """Input payload for password login."""

    email = fields.Email(required=True, validate=validate.Length(max=255))
    password = fields.String(required=True, validate=validate.Length(min=1, max=128))


class RefreshTokenSchema(Schema):
    """Input payload carrying a refresh token (refresh and logout)."""

    refresh_token = fields.String(required=True, validate=validate.Length(min=1, max=255))


class PasswordResetRequestSchema(Schema):
    """Input payload asking for a password reset."""

    email = fields.Email(required=True, validate=validate.Length(max=255))


class PasswordResetConfirmSchema(Schema):
    """Input payload completing a password reset."""

    token = fields.String(required=True, validate=validate.Length(min=1, max=255))
    password = fields.String(required=True, validate=validate.Length(min=8, max=128))


class TokenPairSchema(Schema):
    """Response payload with an access/refresh pair."""

    access_token = fields.String(required=True)
    refresh_token = fields.String(required=True)
    refresh_expires_at = fields.AwareDateTime(required=True)
    token_type = fields.Constant("bearer")


class AccountSchema(Schema):
    """Public account representation."""

    id = fields.UUID(required=True)
    email = fields.Email(required=True)
    provider = fields.Enum(AuthProvider, by_value=True)
    is_active = fields.Boolean()
    created_at = fields.AwareDateTime(allow_none=True)


class SessionSchema(Schema):
    """Active refresh session metadata; never includes the token."""

    id = fields.UUID(required=True)
    issued_at = fields.AwareDateTime()
    expires_at = fields.AwareDateTime()
    ip_address = fields.String(allow_none=True)
    user_agent = fields.String(allow_none=True)
