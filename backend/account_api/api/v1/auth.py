"""Authentication endpoints using the service layer."""

from __future__ import annotations

from flask import Blueprint, current_app, request

from account_api.api.deps import (
    build_auth_service,
    build_password_reset_service,
    client_info,
    current_account_id,
    get_reset_delivery,
    json_response,
    require_auth,
    timing,
)
from account_api.core.extensions import limiter
from account_api.schemas import (
    AccountSchema,
    LoginSchema,
    PasswordResetConfirmSchema,
    PasswordResetRequestSchema,
    RefreshTokenSchema,
    RegisterSchema,
    TokenPairSchema,
)
from account_api.services.auth import LoginIn, RegisterIn

bp = Blueprint("auth", __name__)

register_schema = RegisterSchema()
login_schema = LoginSchema()
refresh_schema = RefreshTokenSchema()
reset_request_schema = PasswordResetRequestSchema()
reset_confirm_schema = PasswordResetConfirmSchema()
account_schema = AccountSchema()
token_schema = TokenPairSchema()


def _login_rate_limit() -> str:
    return str(current_app.config.get("AUTH_LOGIN_RATE_LIMIT", "5 per minute"))


def _payload() -> dict:
    return request.get_json(silent=True) or {}


@bp.post("/register")
@timing
def register():
    """Register a local account and return it with its first token pair."""

    data = register_schema.load(_payload())
    result = build_auth_service().register(
        RegisterIn(email=data["email"], password=data["password"]),
        client=client_info(),
    )
    body = {
        "data": {
            "account": account_schema.dump(result.account),
            "tokens": token_schema.dump(result.tokens),
        }
    }
    return json_response(body, status=201)


@bp.post("/login")
@limiter.limit(_login_rate_limit)
@timing
def login():
    """Authenticate credentials and issue a token pair."""

    data = login_schema.load(_payload())
    result = build_auth_service().login(
        LoginIn(email=data["email"], password=data["password"]),
        client=client_info(),
    )
    return json_response({"data": token_schema.dump(result.tokens)})


@bp.post("/refresh")
@timing
def refresh():
    """Exchange a refresh token for a new pair (rotation)."""

    data = refresh_schema.load(_payload())
    pair = build_auth_service().refresh(data["refresh_token"], client=client_info())
    return json_response({"data": token_schema.dump(pair)})


@bp.post("/logout")
@timing
def logout():
    """Revoke the presented refresh token. Always succeeds for unknown tokens."""

    data = refresh_schema.load(_payload())
    build_auth_service().logout(data["refresh_token"])
    return "", 204


@bp.post("/logout-all")
@require_auth
@timing
def logout_all():
    """Revoke every active session of the authenticated account."""

    revoked = build_auth_service().logout_all(current_account_id())
    return json_response({"data": {"revoked": revoked}})


@bp.post("/password-reset")
@timing
def password_reset_request():
    """Start a password reset. The response never reveals whether the email exists."""

    data = reset_request_schema.load(_payload())
    build_password_reset_service().request_reset(data["email"], on_issued=get_reset_delivery())
    return json_response({"data": {"status": "accepted"}}, status=202)


@bp.post("/password-reset/confirm")
@timing
def password_reset_confirm():
    """Complete a password reset and end all sessions of the account."""

    data = reset_confirm_schema.load(_payload())
    build_password_reset_service().reset_password(data["token"], data["password"])
    return "", 204
