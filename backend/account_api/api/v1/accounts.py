"""Endpoints for the authenticated account."""

from __future__ import annotations

from flask import Blueprint

from account_api.api.deps import (
    build_auth_service,
    current_account_id,
    json_response,
    require_auth,
    timing,
)
from account_api.schemas import AccountSchema, SessionSchema

bp = Blueprint("accounts", __name__)

account_schema = AccountSchema()
sessions_schema = SessionSchema(many=True)


@bp.get("/me")
@require_auth
@timing
def me():
    """Return the authenticated account."""

    account = build_auth_service().get_account(current_account_id())
    return json_response({"data": account_schema.dump(account)})


@bp.get("/me/sessions")
@require_auth
@timing
def my_sessions():
    """List active refresh sessions of the authenticated account."""

    sessions = build_auth_service().list_sessions(current_account_id())
    return json_response({"data": sessions_schema.dump(sessions)})
