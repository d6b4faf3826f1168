"""Generic repository base for SQLAlchemy 2.x.

Repositories are persistence-only: primary-key lookups, whitelisted
attribute updates and guarded bulk updates. They never commit or roll
back; the Unit of Work owns the transaction.

Ledger transitions that may race (rotation, revocation, consuming a reset
token) are written as a single ``UPDATE ... WHERE <guard>`` so the database
arbitrates concurrent writers. The affected row count is the outcome the
caller inspects.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Generic, TypeVar, cast

from sqlalchemy import select, update
from sqlalchemy.engine import CursorResult
from sqlalchemy.orm import Session

from account_api.core.extensions import db

E = TypeVar("E")  # SQLAlchemy mapped entity type


class BaseRepository(Generic[E]):
    """Persistence-only repository for a single mapped class.

    Subclasses MUST define ``model`` and MAY override ``_updatable_fields``
    to allow :meth:`update` on selected attributes.
    """

    #: SQLAlchemy mapped model (must be set by subclasses)
    model: type[E]

    def __init__(self, session: Session | None = None) -> None:
        """
        :param session: Session shared across the Unit of Work scope. When
            omitted the Flask-scoped ``db.session`` is used.
        :type session: :class:`sqlalchemy.orm.Session` | None
        """
        self._session: Session | None = session

    @property
    def session(self) -> Session:
        """Return the session bound to the current Unit of Work."""
        if self._session is not None:
            return self._session
        return cast(Session, db.session)

    def _updatable_fields(self) -> set[str]:
        """Attributes :meth:`update` may assign. Empty by default."""
        return set()

    # ------------------------------ Reads ------------------------------------

    def get(self, entity_id: Any) -> E | None:
        """Retrieve a single entity by its ``id`` primary key.

        :param entity_id: Primary-key value.
        :returns: Entity or ``None``.
        :rtype: E | None
        """
        stmt = select(self.model).where(self.model.id == entity_id)  # type: ignore[attr-defined]
        return cast(E | None, self.session.execute(stmt).scalars().first())

    # ------------------------------ Writes -----------------------------------

    def add(self, instance: E) -> E:
        """Stage ``instance`` and flush so constraints are checked immediately.

        :param instance: New entity instance.
        :type instance: E
        :returns: The same instance after ``flush()``.
        :rtype: E
        """
        self.session.add(instance)
        self.flush()
        return instance

    def update(self, instance: E, **fields: Any) -> E:
        """Assign whitelisted attributes to ``instance`` and flush.

        Assignment goes through ``setattr`` so ``@validates`` hooks on the
        model still run.

        :param instance: Entity to mutate.
        :type instance: E
        :returns: The mutated instance.
        :rtype: E
        :raises ValueError: If a key is not in :meth:`_updatable_fields`.
        """
        rejected = sorted(set(fields) - self._updatable_fields())
        if rejected:
            raise ValueError(f"Unknown or non-updatable fields: {rejected}")
        for key, value in fields.items():
            setattr(instance, key, value)
        self.flush()
        return instance

    def flush(self) -> None:
        """Flush pending changes to the database without committing."""
        self.session.flush()

    def _conditional_update(self, *where: Any, values: Mapping[str, Any]) -> int:
        """Run ``UPDATE model SET values WHERE where`` and return the row count.

        Instances of ``model`` already loaded in the session are expired
        afterwards so the next attribute access reloads the stored state.
        Pending changes must be flushed before calling this.

        :param where: SQL criteria; every clause must hold for a row to change.
        :param values: Column -> new value mapping.
        :type values: Mapping[str, Any]
        :returns: Number of rows the database reports as updated.
        :rtype: int
        """
        stmt = (
            update(self.model)
            .where(*where)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        result = cast(CursorResult[Any], self.session.execute(stmt))
        for obj in list(self.session.identity_map.values()):
            if isinstance(obj, self.model):
                self.session.expire(obj)
        return int(result.rowcount or 0)
