"""Shared API helpers for request parsing, auth and service wiring."""

from __future__ import annotations

import functools
import time
from collections.abc import Callable
from datetime import timedelta
from typing import Any, TypeVar, cast
from uuid import UUID

from flask import Response, current_app, jsonify, request
from flask_jwt_extended import get_jwt_identity, verify_jwt_in_request

from account_api.core.errors import Unauthorized
from account_api.infra.jwt import JWTTokenProvider
from account_api.services._shared.ports import Clock, SystemClock
from account_api.services.auth import AuthService
from account_api.services.password_reset import PasswordResetService
from account_api.services.tokens import AuthTokenConfig, ClientInfo, TokenIssuer

F = TypeVar("F", bound=Callable[..., Any])

#: ``app.extensions`` key holding an optional :class:`Clock` override.
CLOCK_EXTENSION_KEY = "account_api.clock"


def json_response(payload: Any, *, status: int = 200) -> Response:
    """Return a JSON response enforcing a consistent MIME type."""

    response = jsonify(payload)
    response.status_code = status
    return response


def timing(func: F) -> F:
    """Decorator capturing handler execution time in milliseconds."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        start = time.perf_counter()
        try:
            return func(*args, **kwargs)
        finally:
            elapsed_ms = (time.perf_counter() - start) * 1000
            request_endpoint = getattr(request, "endpoint", None)
            current_app.logger.debug(
                "request.elapsed",
                extra={"endpoint": request_endpoint, "elapsed_ms": round(elapsed_ms, 2)},
            )

    return wrapper  # type: ignore[return-value]


def require_auth(func: F) -> F:
    """Ensure the request carries a valid JWT access token."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        verify_jwt_in_request(optional=False)
        return func(*args, **kwargs)

    return wrapper  # type: ignore[return-value]


def current_account_id() -> UUID:
    """Return the account id carried in the verified access token's ``sub``."""

    identity = get_jwt_identity()
    try:
        return UUID(str(identity))
    except ValueError as exc:
        raise Unauthorized("Invalid token subject", code="invalid_token") from exc


def client_info() -> ClientInfo:
    """Capture the caller metadata stored with newly minted refresh tokens."""

    return ClientInfo(
        ip_address=request.remote_addr,
        user_agent=request.headers.get("User-Agent"),
    )


# ------------------------------ Service wiring ------------------------------


def get_clock() -> Clock:
    """Return the clock override registered on the app, or the system clock."""

    return cast(Clock, current_app.extensions.get(CLOCK_EXTENSION_KEY) or SystemClock())


def build_issuer() -> TokenIssuer:
    return TokenIssuer(
        token_provider=JWTTokenProvider(),
        clock=get_clock(),
        token_cfg=AuthTokenConfig.from_mapping(current_app.config),
    )


def build_auth_service() -> AuthService:
    return AuthService(issuer=build_issuer())


def build_password_reset_service() -> PasswordResetService:
    ttl = timedelta(minutes=int(current_app.config.get("PASSWORD_RESET_TTL_MINUTES", 60)))
    return PasswordResetService(clock=get_clock(), ttl=ttl)


#: ``app.extensions`` key holding the password reset delivery hook.
RESET_DELIVERY_EXTENSION_KEY = "account_api.reset_delivery"


def get_reset_delivery() -> Callable[[Any], None] | None:
    """Return the hook that delivers reset tokens, when one is registered."""

    return cast(
        Callable[[Any], None] | None, current_app.extensions.get(RESET_DELIVERY_EXTENSION_KEY)
    )
