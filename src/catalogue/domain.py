"""Catalogue context: products, blend ingredients and custom blends.

The product catalogue itself is owned by an external admin service. This
context holds the tables the engine reads (products, ingredients) and the
one write it performs: materializing custom blends as ordinary products.
"""

from shared.domain import teashop  # noqa: F401
from shared.logging import get_logger

logger = get_logger("catalogue")

CUSTOM_BLEND_CATEGORY = "custom-blend"
