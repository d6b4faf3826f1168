"""
Domain-level exceptions used within the service layer.

These exceptions are **framework-agnostic** and should never import or depend
on Flask or HTTP. They serve as stable contracts between repositories, domain
models, and application services.

The translation to HTTP responses (RFC 7807) is handled by
``account_api/core/errors.py`` via ``BaseService.translate_exceptions()``.

Storage failures are deliberately absent: SQLAlchemy errors propagate
unchanged out of the services.
"""

from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID

from sqlalchemy.exc import IntegrityError


def violates(
    exc: IntegrityError, constraint_name: str, *, columns: tuple[str, ...] = ()
) -> bool:
    """
    Check whether an IntegrityError originates from a specific constraint.

    Parameters
    ----------
    exc : IntegrityError
        The exception raised by SQLAlchemy during flush/commit.
    constraint_name : str
        The name of the database constraint to match
        (e.g., ``'uq_accounts_provider_email'``).
    columns : tuple[str, ...], optional
        ``table.column`` names SQLite reports instead of the constraint name.

    Returns
    -------
    bool
        True if the IntegrityError matches the given constraint.
    """
    # PostgreSQL names the constraint; SQLite only lists the columns.
    message = str(exc.orig).lower() if exc.orig else ""
    if constraint_name.lower() in message:
        return True
    return bool(columns) and all(col.lower() in message for col in columns)


# --------------------------------------------------------------------------- #
# Base types
# --------------------------------------------------------------------------- #


class ServiceError(Exception):
    """
    Base class for all service-level errors.

    Notes
    -----
    - These are *not* HTTP errors.
    - They can be safely raised from repositories or domain logic.
    - The API layer or BaseService will later translate them to APIError.
    """

    pass


# --------------------------------------------------------------------------- #
# Generic domain-level errors
# --------------------------------------------------------------------------- #


@dataclass(slots=True)
class NotFoundError(ServiceError):
    """
    Raised when an entity is not found in the repository.

    :param entity: Entity name (e.g., "Account").
    :type entity: str
    :param key: Identifier or search key.
    :type key: str | int
    """

    entity: str
    key: str | int

    def __str__(self) -> str:
        return f"{self.entity} not found: {self.key}"


@dataclass(slots=True)
class ConflictError(ServiceError):
    """
    Raised when a unique constraint or business rule conflict occurs.

    :param entity: Entity name (e.g., "Account").
    :type entity: str
    :param detail: Short human-readable explanation.
    :type detail: str
    """

    entity: str
    detail: str

    def __str__(self) -> str:
        return f"Conflict on {self.entity}: {self.detail}"


# --------------------------------------------------------------------------- #
# Token lifecycle errors
# --------------------------------------------------------------------------- #


class AccountNotFoundError(NotFoundError):
    """The referenced account does not exist or has been disabled."""

    __slots__ = ()

    def __init__(self, account_id: UUID | str) -> None:
        NotFoundError.__init__(self, "Account", str(account_id))


class TokenError(ServiceError):
    """Base for refresh/reset token outcomes that deny the request."""

    default_message = "Token rejected"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)


class InvalidTokenError(TokenError):
    """The presented token string was never issued (or is unusable)."""

    default_message = "Refresh token is invalid"


class TokenExpiredError(TokenError):
    """The presented token is known but past its expiry."""

    default_message = "Refresh token has expired"


class TokenReuseDetectedError(TokenError):
    """
    A consumed token was presented again.

    :param account_id: Owner of the replayed token.
    :param revoked: Number of sessions revoked by the cascade.
    """

    default_message = "Refresh token reuse detected; all sessions have been revoked"

    def __init__(self, account_id: UUID, revoked: int = 0) -> None:
        super().__init__()
        self.account_id = account_id
        self.revoked = revoked


class InvalidCredentialsError(ServiceError):
    """Email/password pair did not match an active local account."""

    def __init__(self, message: str = "Invalid email or password") -> None:
        super().__init__(message)
