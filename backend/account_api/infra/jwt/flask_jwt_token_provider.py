# account_api/infra/jwt/flask_jwt_token_provider.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any, cast

from flask import current_app

from account_api.services._shared.ports import TokenProvider


@dataclass(slots=True)
class JWTTokenProvider(TokenProvider):
    """
    Adapter for Flask-JWT-Extended.

    Signing key, algorithm and default lifetime come from the application
    config (``JWT_SECRET_KEY``, ``JWT_ALGORITHM``,
    ``JWT_ACCESS_TOKEN_EXPIRES``), read once by :class:`JWTManager`.

    .. note::
       Requires an active Flask app context with proper JWT settings.
    """

    def create_access_token(
        self,
        *,
        identity: str,
        additional_claims: dict[str, Any] | None = None,
        expires_delta: timedelta | None = None,
        issued_at: datetime | None = None,
    ) -> str:
        from flask_jwt_extended import create_access_token as _create_access

        claims = dict(additional_claims or {})
        if issued_at is not None:
            # Additional claims override the library's wall-clock timestamps.
            lifetime = expires_delta or current_app.config.get("JWT_ACCESS_TOKEN_EXPIRES")
            claims["iat"] = claims["nbf"] = issued_at
            if lifetime:
                claims["exp"] = issued_at + lifetime

        # ``expires_delta=None`` lets the library fall back to the app config.
        return cast(
            str,
            _create_access(
                identity=identity,
                additional_claims=claims,
                expires_delta=expires_delta,
            ),
        )

    def decode(self, token: str) -> dict[str, Any]:
        from flask_jwt_extended import decode_token

        return cast(dict[str, Any], decode_token(token))

    def get_subject(self, token: str) -> str:
        return cast(str, self.decode(token)["sub"])

    def get_expires_at(self, token: str) -> datetime:
        exp = int(self.decode(token)["exp"])
        return datetime.fromtimestamp(exp, tz=UTC)
