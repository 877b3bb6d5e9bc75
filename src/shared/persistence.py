"""SQLAlchemy access underneath protean's repositories.

Repositories load and save aggregates. They do not take row locks or open
savepoints, so the few places that need either reach the session of the
current unit of work and the table behind an aggregate through these
helpers.
"""

from contextlib import contextmanager

from protean.utils.globals import current_domain, current_uow
from sqlalchemy import insert, select


def session_for(aggregate_cls):
    """SQLAlchemy session of the active unit of work for the aggregate's provider."""
    if not current_uow:
        raise RuntimeError("row locks and savepoints need an active unit of work")
    return current_uow.get_session(aggregate_cls.meta_.provider)


def table_for(aggregate_cls):
    # Building the DAO registers the aggregate's table on the provider metadata.
    current_domain.repository_for(aggregate_cls)._dao  # noqa: B018
    provider = current_domain.providers[aggregate_cls.meta_.provider]
    return provider._metadata.tables[aggregate_cls.meta_.schema_name]


def lock_rows(aggregate_cls, values, column: str = "id") -> list[str]:
    """``SELECT ... FOR UPDATE`` the rows whose ``column`` is in ``values``, in ascending id order.

    Returns the ids of the locked rows. Taking locks in a fixed order keeps two
    transactions that lock overlapping rows from deadlocking.
    """
    values = sorted(set(values))
    if not values:
        return []
    table = table_for(aggregate_cls)
    query = select(table.c.id).where(table.c[column].in_(values)).order_by(table.c.id).with_for_update()
    return list(session_for(aggregate_cls).scalars(query))


@contextmanager
def savepoint(aggregate_cls):
    """Nested transaction; an exception inside rolls back to the savepoint only."""
    with session_for(aggregate_cls).begin_nested():
        yield


def insert_row(entity) -> None:
    """Insert an aggregate's row directly, without children.

    Used inside ``savepoint()`` for rows whose id doubles as a uniqueness
    key: a concurrent insert of the same id fails here with
    ``IntegrityError`` and the caller re-reads the winner's row.
    """
    aggregate_cls = type(entity)
    table = table_for(aggregate_cls)
    values = {column.name: getattr(entity, column.name, None) for column in table.columns}
    session_for(aggregate_cls).execute(insert(table).values(**values))
