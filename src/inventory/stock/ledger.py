"""Stock ledger: the single authority on whether there is enough stock.

Checks made while shopping are advisory. Nothing is held back for a cart,
since carts can be abandoned indefinitely. The binding check happens at
checkout: product rows are locked in id order, re-checked, and decremented
with a conditional UPDATE that can never take stock below zero.

Everything here runs inside the caller's unit of work.
"""

from collections.abc import Iterable

from protean.utils.globals import current_domain
from sqlalchemy import select, update

from catalogue.product.product import Product
from inventory.domain import logger
from shared.errors import InsufficientStockError
from shared.persistence import lock_rows, session_for, table_for


def check_and_reserve(product: Product, requested: int, held: int = 0) -> None:
    """Raise ``InsufficientStockError`` unless ``held + requested`` units are in stock.

    ``held`` is what the shopper's cart already has of the product. Passing
    the check reserves nothing; it is re-run under lock at checkout.
    """
    total = held + requested
    if product.stock < total:
        raise InsufficientStockError(product.id, available=product.stock, requested=total)


def lock_products(product_ids: Iterable[str]) -> dict[str, Product]:
    """Lock product rows for update, always in ascending id order, and load them."""
    repo = current_domain.repository_for(Product)
    return {product_id: repo.get(product_id) for product_id in lock_rows(Product, product_ids)}


def decrement(product_id: str, quantity: int) -> None:
    table = table_for(Product)
    session = session_for(Product)
    result = session.execute(
        update(table)
        .where(table.c.id == product_id, table.c.stock >= quantity)
        .values(stock=table.c.stock - quantity)
    )
    if result.rowcount != 1:
        available = session.scalar(select(table.c.stock).where(table.c.id == product_id)) or 0
        raise InsufficientStockError(product_id, available=available, requested=quantity)
    logger.debug("stock_decremented", product_id=product_id, quantity=quantity)
