"""
Repository helpers for conditional writes.

Both helpers rely on a unique constraint in the schema, so the
read-then-write they perform cannot produce duplicates under concurrency.
"""
import logging
from typing import Any, Dict, Type

from sqlalchemy import select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)

_NATIVE_INSERTS = {
    "sqlite": sqlite.insert,
    "postgresql": postgresql.insert,
}


def _filter_by_key(model, key: Dict[str, Any]):
    return select(model).filter_by(**key)


def find_or_create_by_name(session: Session, model: Type, name: str, **defaults):
    """
    Return the row of `model` whose unique `name` column equals `name`,
    inserting it when absent.

    The insert runs inside a SAVEPOINT; losing a race against another writer
    raises IntegrityError there, which is rolled back and answered by
    re-reading the winner's row.
    """
    instance = session.scalars(select(model).filter_by(name=name)).first()
    if instance is not None:
        return instance

    try:
        with session.begin_nested():
            instance = model(name=name, **defaults)
            session.add(instance)
    except IntegrityError:
        logger.debug("Concurrent insert of %s %r, re-reading", model.__name__, name)
        instance = session.scalars(select(model).filter_by(name=name)).one()
    return instance


def upsert_by_composite_key(
    session: Session,
    model: Type,
    key: Dict[str, Any],
    values: Dict[str, Any],
    create_only: Dict[str, Any] = None,
):
    """
    Insert a row identified by `key` (the columns of a unique constraint) or
    update `values` on the existing one. `create_only` columns are written on
    insert and left alone on update.

    Uses INSERT ... ON CONFLICT DO UPDATE on SQLite and PostgreSQL. Other
    backends, and calls with nothing to update, get a savepoint-guarded
    read-then-write so an existing row is returned without an insert.

    Returns the persisted instance.
    """
    create_only = create_only or {}
    dialect = session.get_bind().dialect.name
    native_insert = _NATIVE_INSERTS.get(dialect)

    if native_insert is not None and values:
        stmt = native_insert(model).values(**key, **values, **create_only)
        stmt = stmt.on_conflict_do_update(
            index_elements=list(key.keys()),
            set_={column: stmt.excluded[column] for column in values},
        )
        session.execute(stmt)
        # Core statements bypass the identity map
        instance = session.scalars(
            _filter_by_key(model, key).execution_options(populate_existing=True)
        ).one()
        return instance

    instance = session.scalars(_filter_by_key(model, key)).first()
    if instance is None:
        try:
            with session.begin_nested():
                instance = model(**key, **values, **create_only)
                session.add(instance)
            return instance
        except IntegrityError:
            instance = session.scalars(_filter_by_key(model, key)).one()

    for column, value in values.items():
        setattr(instance, column, value)
    session.flush()
    return instance
