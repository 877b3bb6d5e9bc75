"""Blend ingredient reference data (base teas and add-ins). Read only to the engine."""

from protean.fields import Boolean, DateTime, Float, Identifier, String

from catalogue.domain import teashop
from shared.model import utcnow


@teashop.aggregate
class Ingredient:
    id = Identifier(identifier=True)
    name = String(required=True, max_length=255)
    category = String(max_length=100, default="addIn")
    is_base = Boolean(default=False)
    # Quantities are in the ingredient's blending unit (grams or teaspoons).
    base_amount = Float()
    increment_amount = Float()
    cost_per_unit = Float()
    is_active = Boolean(default=True)
    created_at = DateTime(default=utcnow)
