"""Pytest fixtures configuring an isolated transactional database layer.

Each test runs inside an outer transaction on an in-memory SQLite database.
The session under test joins it through SAVEPOINTs, so services may commit
freely while nothing leaks between cases.
"""

from __future__ import annotations

import os

import pytest
from account_api.api.deps import CLOCK_EXTENSION_KEY, RESET_DELIVERY_EXTENSION_KEY
from account_api.core.config import TestingConfig
from account_api.core.extensions import db as _db  # Flask-SQLAlchemy instance
from account_api.factory import create_app  # application factory under test
from account_api.services._shared.ports import (
    FrozenClock,
    SequenceRandomSource,
    StubTokenProvider,
)
from account_api.services.tokens import AuthTokenConfig, TokenIssuer
from sqlalchemy.orm import scoped_session, sessionmaker
from tests.helpers.clock import NOW


@pytest.fixture(scope="session")
def app():
    """Create a Flask application configured for testing.

    Returns
    -------
    flask.Flask
        Application instance with :class:`TestingConfig` applied and logging
        noise reduced.
    """
    # Ensure env-based config does not leak into tests
    os.environ.pop("DATABASE_URL", None)
    os.environ.pop("TEST_DATABASE_URL", None)
    app = create_app(TestingConfig)
    app.logger.setLevel("WARNING")
    return app


@pytest.fixture(scope="session")
def db(app):
    """Create database tables once per test session.

    The application context stays pushed for the whole session, so test
    client requests reuse it instead of tearing the session down.

    Yields
    ------
    flask_sqlalchemy.SQLAlchemy
        Database extension bound to the testing application.
    """
    with app.app_context():
        _db.create_all()
        yield _db
        _db.session.remove()
        _db.drop_all()


@pytest.fixture(scope="session")
def connection(db):
    """Keep a dedicated DBAPI connection open for the whole session."""
    conn = db.engine.connect()
    try:
        yield conn
    finally:
        conn.close()


@pytest.fixture(scope="function")
def session(db, connection):
    """Provide a SQLAlchemy session wrapped in an outer transaction.

    Yields
    ------
    sqlalchemy.orm.scoping.scoped_session
        Scoped session bound to the shared connection; everything it commits
        is rolled back after each test.

    Notes
    -----
    ``join_transaction_mode="create_savepoint"`` turns every ``commit()`` and
    ``rollback()`` issued by a Unit of Work into a SAVEPOINT release or
    rollback, leaving the outer transaction to this fixture.
    """
    top_trans = connection.begin()

    SessionFactory = sessionmaker(bind=connection, join_transaction_mode="create_savepoint")
    scoped = scoped_session(SessionFactory)

    # Monkey-patch db.session so app code uses this scoped session
    original_session = db.session
    db.session.remove()
    db.session = scoped

    try:
        yield scoped
    finally:
        scoped.remove()
        db.session = original_session
        top_trans.rollback()


@pytest.fixture(scope="session")
def faker():
    """Provide a :class:`faker.Faker` instance seeded for deterministic tests."""
    from faker import Faker

    fk = Faker()
    Faker.seed(1337)
    return fk


# -- Hook up Factory Boy to pytest SQLAlchemy session --------------------------
@pytest.fixture(autouse=True)
def _factories_session(session):
    """Wire Factory Boy's session helper to the transactional session fixture."""
    from tests.factories import SQLAlchemySession

    SQLAlchemySession.set(session)
    yield


# -- Token core wiring ---------------------------------------------------------
@pytest.fixture()
def clock() -> FrozenClock:
    """Clock frozen at :data:`tests.helpers.clock.NOW`."""
    return FrozenClock(NOW)


@pytest.fixture()
def token_cfg() -> AuthTokenConfig:
    return AuthTokenConfig()


@pytest.fixture()
def issuer(clock, token_cfg) -> TokenIssuer:
    """Token issuer with deterministic access and refresh token strings."""
    return TokenIssuer(
        token_provider=StubTokenProvider(now=NOW),
        clock=clock,
        random_source=SequenceRandomSource(prefix="refresh"),
        token_cfg=token_cfg,
    )


# -- HTTP ----------------------------------------------------------------------
@pytest.fixture()
def client(app, session):
    """Return a Flask test client bound to the transactional session."""
    return app.test_client()


@pytest.fixture()
def app_clock(app, clock):
    """Install ``clock`` as the application-wide clock for the test."""
    app.extensions[CLOCK_EXTENSION_KEY] = clock
    try:
        yield clock
    finally:
        app.extensions.pop(CLOCK_EXTENSION_KEY, None)


@pytest.fixture()
def reset_outbox(app):
    """Capture password reset tokens handed to the delivery hook."""
    outbox: list = []
    app.extensions[RESET_DELIVERY_EXTENSION_KEY] = outbox.append
    try:
        yield outbox
    finally:
        app.extensions.pop(RESET_DELIVERY_EXTENSION_KEY, None)
