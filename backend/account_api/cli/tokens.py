"""Flask CLI commands for operating on the refresh token ledger."""

from __future__ import annotations

import logging
from uuid import UUID

import click
from flask.cli import with_appcontext

from account_api.api.deps import build_auth_service, get_clock
from account_api.models.refresh_token import RevocationReason
from account_api.services._shared.errors import AccountNotFoundError
from account_api.services.tokens import RevocationService

LOGGER = logging.getLogger(__name__)

_REASONS = (
    RevocationReason.MANUAL_LOGOUT,
    RevocationReason.REUSE_DETECTED,
    RevocationReason.PASSWORD_RESET,
)


def _parse_account_id(value: str) -> UUID:
    try:
        return UUID(value)
    except ValueError as exc:
        raise click.BadParameter(f"'{value}' is not a valid account id") from exc


@click.group("tokens")
def tokens_cli() -> None:
    """Inspect and revoke refresh token sessions."""


@tokens_cli.command("revoke-account")
@click.argument("account_id")
@click.option(
    "--reason",
    type=click.Choice(_REASONS),
    default=RevocationReason.MANUAL_LOGOUT,
    show_default=True,
    help="Revocation reason stored on every revoked token.",
)
@with_appcontext
def revoke_account(account_id: str, reason: str) -> None:
    """Revoke every active refresh token of ACCOUNT_ID."""
    service = RevocationService(clock=get_clock())
    revoked = service.revoke_all_for_account(_parse_account_id(account_id), reason)
    LOGGER.info("Revoked %s session(s) for account %s", revoked, account_id)
    click.echo(f"Revoked {revoked} session(s).")


@tokens_cli.command("sessions")
@click.argument("account_id")
@with_appcontext
def list_sessions(account_id: str) -> None:
    """List active refresh token sessions of ACCOUNT_ID, newest first."""
    try:
        sessions = build_auth_service().list_sessions(_parse_account_id(account_id))
    except AccountNotFoundError as exc:
        raise click.ClickException(str(exc)) from exc

    if not sessions:
        click.echo("No active sessions.")
        return
    for item in sessions:
        click.echo(
            f"{item.id}  issued={item.issued_at.isoformat()}  "
            f"expires={item.expires_at.isoformat()}  ip={item.ip_address or '-'}"
        )
