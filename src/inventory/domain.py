"""Inventory context: the stock ledger.

Product stock is the only resource shared between shoppers, so every stock
decision goes through ``inventory.stock.ledger``.
"""

from shared.domain import teashop  # noqa: F401
from shared.logging import get_logger

logger = get_logger("inventory")
