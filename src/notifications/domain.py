"""Notifications context: outbound shopper email.

Delivery is fire-and-forget. A failed send is logged and never undoes or
blocks the operation that triggered it.
"""

from shared.domain import teashop  # noqa: F401
from shared.logging import get_logger

logger = get_logger("notifications")
