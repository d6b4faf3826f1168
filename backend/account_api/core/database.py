"""Engine-level tweaks applied once the SQLAlchemy extension is bound.

SQLite is used for local development and the test-suite. Its Python driver
issues ``BEGIN`` lazily and ignores ``SAVEPOINT`` boundaries, which breaks the
conditional updates the refresh-token ledger relies on. The listeners below
hand transaction control back to SQLAlchemy and turn on foreign keys so
account deletion cascades to the ledger.

A deferred SQLite transaction that reads and then writes cannot wait for a
concurrent writer: the lock upgrade fails at once with ``database is
locked``. Read-write units therefore ask for ``BEGIN IMMEDIATE`` through the
:data:`BEGIN_MODE_OPTION` execution option, which takes the write lock up
front and waits up to the busy timeout for the current writer to commit.
"""

from __future__ import annotations

from typing import Any

from flask import Flask
from sqlalchemy import event
from sqlalchemy.engine import Engine

from account_api.core.extensions import db

#: Connection execution option naming the SQLite ``BEGIN`` variant.
BEGIN_MODE_OPTION = "sqlite_begin_mode"
BEGIN_IMMEDIATE = "IMMEDIATE"

DEFAULT_BUSY_TIMEOUT_MS = 5000


def configure_sqlite_engine(engine: Engine, *, busy_timeout_ms: int = DEFAULT_BUSY_TIMEOUT_MS) -> None:
    """
    Let SQLAlchemy own ``BEGIN`` on pysqlite, enforce foreign keys and wait
    on locks.

    :param engine: A SQLite engine with no connections checked out yet.
    :param busy_timeout_ms: How long a connection waits for a lock held by
        another connection before failing.
    """

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection: Any, connection_record: Any) -> None:
        # Disable pysqlite's implicit transaction handling.
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.execute(f"PRAGMA busy_timeout={int(busy_timeout_ms)}")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _on_begin(conn: Any) -> None:
        if conn.get_execution_options().get(BEGIN_MODE_OPTION) == BEGIN_IMMEDIATE:
            conn.exec_driver_sql("BEGIN IMMEDIATE")
        else:
            conn.exec_driver_sql("BEGIN")


def init_app(app: Flask) -> None:
    """Install dialect specific engine listeners for ``app``.

    Must run before the first connection is checked out, since in-memory
    SQLite keeps a single connection for the lifetime of the engine.
    """
    with app.app_context():
        engine = db.engine
        if engine.dialect.name == "sqlite":
            configure_sqlite_engine(
                engine,
                busy_timeout_ms=app.config.get("SQLITE_BUSY_TIMEOUT_MS", DEFAULT_BUSY_TIMEOUT_MS),
            )
