"""Ordering bounded context: shopping carts, checkout and orders.

Carts are mutable and owned by exactly one user or guest session. Checkout
turns a cart into an immutable order in a single transaction.
"""

from shared.domain import teashop  # noqa: F401
from shared.logging import get_logger

logger = get_logger("ordering")
