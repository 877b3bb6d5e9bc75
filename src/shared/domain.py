"""The teashop protean domain.

Catalogue, inventory, ordering, identity and notifications all register
their elements on this one domain. Checkout reads the cart, locks stock and
writes the order in a single unit of work, and a unit of work is scoped to
one domain, so the contexts share it and keep their own packages, loggers
and routers.

``init_domain(settings)`` points the default provider at
``settings.database_url``, imports every element module and initializes the
domain. It runs once per process; later calls only swap the active settings.
"""

import importlib

from protean.domain import Domain
from protean.utils.globals import current_domain
from sqlalchemy import event
from sqlalchemy.exc import SQLAlchemyError

from shared.errors import CartError
from shared.logging import get_logger
from shared.settings import Settings, use_settings

teashop = Domain(name="teashop")

logger = get_logger(__name__)

ELEMENT_MODULES = (
    "identity.resolver",
    "identity.contact",
    "catalogue.product.product",
    "catalogue.ingredient.ingredient",
    "catalogue.blend.composition",
    "catalogue.blend.blend",
    "catalogue.blend.library",
    "catalogue.blend.materializer",
    "ordering.cart.cart",
    "ordering.cart.items",
    "ordering.cart.management",
    "ordering.checkout.pricing",
    "ordering.checkout.coordinator",
    "ordering.order.order",
)

_initialized = False


def database_config(url: str) -> dict:
    """Provider configuration for a SQLAlchemy database URL."""
    provider = "sqlite" if url.startswith("sqlite") else "postgresql"
    return {"provider": provider, "database_uri": url}


def init_domain(settings: Settings) -> Domain:
    global _initialized

    use_settings(settings)
    if _initialized:
        return teashop

    teashop.config["databases"]["default"] = database_config(settings.database_url)
    for module in ELEMENT_MODULES:
        importlib.import_module(module)
    teashop.init(traverse=False)

    with teashop.domain_context():
        for _, provider in teashop.providers.items():
            if provider.conn_info["provider"] == "sqlite":
                serialize_sqlite_writers(provider)

    _initialized = True
    logger.info("domain_initialized", database=database_config(settings.database_url)["provider"])
    return teashop


def serialize_sqlite_writers(provider) -> None:
    """Make every SQLite transaction take the write lock up front.

    pysqlite's own transaction handling is switched off and each transaction
    opens with ``BEGIN IMMEDIATE``, so concurrent writers queue on the
    database lock instead of failing on upgrade. This is what the row locks
    taken elsewhere amount to on SQLite.
    """
    session = provider.get_connection()
    engine = session.get_bind()
    session.close()

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        dbapi_connection.execute("PRAGMA busy_timeout = 30000")

    @event.listens_for(engine, "begin")
    def _on_begin(connection):
        connection.exec_driver_sql("BEGIN IMMEDIATE")

    # Connections opened before the listeners existed would keep the old behaviour.
    engine.dispose()


def process(command, action: str):
    """Process a command synchronously and return the handler's result.

    The handler runs inside a unit of work. A storage failure rolls it back
    and is reported as ``CartError("failed to <action>")``.
    """
    try:
        return current_domain.process(command, asynchronous=False)
    except SQLAlchemyError as exc:
        logger.error("transaction_failed", action=action, error=str(exc))
        raise CartError(f"failed to {action}") from exc
