"""Transaction boundary contract shared by every service use-case."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover - typing only
    from account_api.repositories import (
        AccountRepository,
        PasswordResetRepository,
        RefreshTokenRepository,
    )


class UnitOfWork(ABC):
    """
    One transaction, seen through the repositories that take part in it.

    A use-case opens the unit with ``with``, reads and writes through the
    repository attributes, and leaves the outcome to ``__exit__``: ledger
    rows staged inside the block are made durable together or not at all.
    """

    accounts: AccountRepository
    refresh_tokens: RefreshTokenRepository
    password_resets: PasswordResetRepository

    def __enter__(self) -> UnitOfWork:
        return self

    @abstractmethod
    def __exit__(self, exc_type, exc, tb) -> None:
        """Finish the transaction; never suppresses ``exc``."""

    @abstractmethod
    def commit(self) -> None: ...

    @abstractmethod
    def rollback(self) -> None: ...
