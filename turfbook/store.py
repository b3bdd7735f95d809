"""
SQLAlchemy-backed store used by the workflows.

The workflows never touch `db.session` directly; they go through a store so
the transaction boundary, row locks and compare-and-set updates live in one
place.

Usage:
    store = SqlAlchemyStore()
    with store.transaction():
        turf = store.lock(Turf, turf_id)
        ...
"""

from contextlib import contextmanager

import sqlalchemy as sa

from turfbook import db


class SqlAlchemyStore:
    """Store collaborator over a Flask-SQLAlchemy session."""

    def __init__(self, session=None):
        self._session = session

    @property
    def session(self):
        return self._session if self._session is not None else db.session

    def save(self, *entities):
        """Add entities to the session and flush so they receive ids."""
        self.session.add_all(entities)
        self.session.flush()
        return entities[0] if len(entities) == 1 else entities

    def find_by_id(self, model, record_id):
        if record_id is None:
            return None
        return self.session.get(model, record_id)

    def find_where(self, model, *criteria, order_by=None):
        """Return every row of `model` matching all SQLAlchemy criteria."""
        query = sa.select(model).where(*criteria)
        if order_by is not None:
            query = query.order_by(order_by)
        return list(self.session.scalars(query).all())

    def count_where(self, model, *criteria):
        query = sa.select(sa.func.count()).select_from(model).where(*criteria)
        return self.session.scalar(query) or 0

    def delete(self, entity):
        self.session.delete(entity)
        self.session.flush()

    def lock(self, model, record_id):
        """
        Load a row with SELECT ... FOR UPDATE so concurrent approvals on the
        same record serialize until the surrounding transaction ends.

        SQLite ignores the lock clause; its writes are serialized anyway.
        """
        row = self.session.scalar(
            sa.select(model)
            .where(model.id == record_id)
            .with_for_update(nowait=False)
        )
        if row is not None:
            self.session.refresh(row)
        return row

    def compare_and_set(self, entity, field, expected, **values):
        """
        Atomically write `values` to `entity` only if its stored `field` is
        currently one of `expected`.

        Returns True when this caller won the update, False when the stored
        value had already moved on. On success the entity is refreshed from
        the database.
        """
        model = type(entity)
        column = getattr(model, field)
        result = self.session.execute(
            sa.update(model)
            .where(model.id == entity.id, column.in_(list(expected)))
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            return False
        self.session.refresh(entity)
        return True

    def update_where(self, model, *criteria, **values):
        """Bulk conditional update; returns the number of rows changed."""
        result = self.session.execute(
            sa.update(model)
            .where(*criteria)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def refresh(self, entity):
        self.session.refresh(entity)
        return entity

    def commit(self):
        self.session.commit()

    def rollback(self):
        self.session.rollback()

    @contextmanager
    def transaction(self):
        """
        Run a block as one unit of work: commit when it returns, roll back
        and re-raise when it raises.
        """
        try:
            yield self
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
