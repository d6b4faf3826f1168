"""
SQLAlchemy units of work bound to the Flask-scoped session.
"""

from __future__ import annotations

from contextlib import suppress

from flask import current_app
from sqlalchemy import event, text
from sqlalchemy.engine import Connection
from sqlalchemy.exc import InvalidRequestError, SQLAlchemyError
from sqlalchemy.orm import Session, SessionTransaction, scoped_session

from account_api.core.database import BEGIN_IMMEDIATE, BEGIN_MODE_OPTION
from account_api.core.extensions import db
from account_api.repositories import (
    AccountRepository,
    PasswordResetRepository,
    RefreshTokenRepository,
)
from account_api.uow.base import UnitOfWork


class SQLAlchemyRepositoryContainer:
    """Provide repository instances that share a SQLAlchemy session."""

    def __init__(self, *, session: Session) -> None:
        self.session = session
        self.accounts = AccountRepository(session=self.session)
        self.refresh_tokens = RefreshTokenRepository(session=self.session)
        self.password_resets = PasswordResetRepository(session=self.session)


class SQLAlchemyUnitOfWork(SQLAlchemyRepositoryContainer, UnitOfWork):
    """
    Read-write unit: commits on a clean exit, rolls back when an exception
    escapes the ``with`` block.

    Entering the unit begins the transaction when none is running, asking
    SQLite for ``BEGIN IMMEDIATE`` so two units that read and then update
    the same ledger row queue up instead of failing on the lock upgrade.
    Other dialects ignore the option.
    """

    def __init__(self) -> None:
        super().__init__(session=db.session)

    def __enter__(self) -> SQLAlchemyUnitOfWork:
        orm_session = self.session() if isinstance(self.session, scoped_session) else self.session
        if not orm_session.in_transaction():
            self.session.connection(execution_options={BEGIN_MODE_OPTION: BEGIN_IMMEDIATE})
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is not None:
            self.rollback()
            return
        try:
            self.commit()
        except Exception:
            self.rollback()
            raise

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()


class _WriteGuard:
    """Reject ORM flushes and DML issued through one session and connection.

    The hooks check :attr:`armed` on every call, so a hook that could not be
    detached stays inert once the guard is disarmed.
    """

    WRITE_VERBS = frozenset(
        {"insert", "update", "delete", "merge", "alter", "drop", "truncate", "create", "replace"}
    )

    def __init__(self, session: Session, connection: Connection) -> None:
        self.session = session
        self.connection = connection
        self.armed = False

    def _on_flush(self, session, flush_context, instances) -> None:
        if self.armed and (session.new or session.dirty or session.deleted):
            raise RuntimeError(
                "Read-only UnitOfWork: ORM flush blocked (pending new/dirty/deleted objects)."
            )

    def _on_cursor_execute(self, conn, cursor, statement, parameters, context, executemany) -> None:
        if not self.armed or not statement:
            return
        verb = statement.lstrip().split(None, 1)[0].lower()
        if verb in self.WRITE_VERBS:
            raise RuntimeError(f"Read-only UnitOfWork: SQL statement blocked: {verb.upper()}")

    def arm(self) -> None:
        event.listen(self.session, "before_flush", self._on_flush)
        event.listen(self.connection, "before_cursor_execute", self._on_cursor_execute)
        self.armed = True

    def disarm(self) -> None:
        if not self.armed:
            return
        self.armed = False
        with suppress(InvalidRequestError):
            event.remove(self.session, "before_flush", self._on_flush)
        with suppress(InvalidRequestError, NotImplementedError):
            event.remove(self.connection, "before_cursor_execute", self._on_cursor_execute)


class SQLAlchemyReadOnlyUnitOfWork(SQLAlchemyRepositoryContainer, UnitOfWork):
    """
    Read-only unit for session listings and account lookups.

    When it can own the transaction it also asks PostgreSQL or MySQL for
    ``SET TRANSACTION READ ONLY`` and rolls back on exit. When a transaction
    is already running it attaches to it and leaves it alone. In both cases
    a :class:`_WriteGuard` rejects writes, and ``commit()`` always raises.

    Parameters
    ----------
    enforce_db_readonly:
        Issue ``SET TRANSACTION READ ONLY`` when the dialect supports it.
        SQLite has no such directive; the guard still applies there.
    """

    _READ_ONLY_DIALECTS = ("postgresql", "mysql", "mariadb")

    def __init__(self, *, enforce_db_readonly: bool = True) -> None:
        super().__init__(session=db.session)
        self.enforce_db_readonly = enforce_db_readonly
        self._owned: SessionTransaction | None = None
        self._guard: _WriteGuard | None = None

    def __enter__(self) -> SQLAlchemyReadOnlyUnitOfWork:
        try:
            self._owned = self.session.begin()
        except InvalidRequestError:
            self._owned = None

        conn = self.session.connection()
        orm_session = self.session() if isinstance(self.session, scoped_session) else self.session
        self._guard = _WriteGuard(orm_session, conn)
        self._guard.arm()

        if self._owned is not None and self.enforce_db_readonly:
            self._request_read_only(conn)
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        try:
            if self._owned is not None:
                self._owned = None
                self.session.rollback()
        finally:
            if self._guard is not None:
                self._guard.disarm()
                self._guard = None

    def commit(self) -> None:
        """
        Disallow commit in read-only Unit of Work.

        :raises RuntimeError: Always.
        """
        raise RuntimeError("Read-only UnitOfWork does not allow commit().")

    def rollback(self) -> None:
        self.session.rollback()

    def _request_read_only(self, conn: Connection) -> None:
        if conn.dialect.name not in self._READ_ONLY_DIALECTS:
            return
        try:
            self.session.execute(text("SET TRANSACTION READ ONLY"))
        except SQLAlchemyError as exc:
            current_app.logger.warning("SET TRANSACTION READ ONLY failed (%s); guard only.", exc)
