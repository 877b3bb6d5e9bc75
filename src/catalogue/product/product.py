"""Catalogue product aggregate.

Blend products are ordinary products in the ``custom-blend`` category. Their
id is derived from the composition key, so two materializations of the same
blend can only ever produce one row; the key itself is kept in ``tags`` and
``composition_key`` for the catalogue's search index.
"""

import json
from decimal import Decimal

from protean.fields import Boolean, DateTime, Float, Identifier, Integer, String, Text

from catalogue.domain import teashop
from shared.model import money, utcnow


@teashop.aggregate
class Product:
    id = Identifier(identifier=True)
    name = String(required=True, max_length=255)
    description = Text()
    price = Float(required=True, min_value=0.0)
    stock = Integer(default=0, min_value=0)
    is_active = Boolean(default=True)
    category = String(max_length=100)
    tags = Text()  # JSON array of tag strings
    composition_key = String(max_length=512)
    created_at = DateTime(default=utcnow)
    updated_at = DateTime(default=utcnow)

    @property
    def unit_price(self) -> Decimal:
        return money(self.price)

    @property
    def tag_list(self) -> list[str]:
        return json.loads(self.tags) if self.tags else []

    def to_payload(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "price": float(self.unit_price),
            "stock": self.stock,
            "isActive": self.is_active,
            "category": self.category,
        }
