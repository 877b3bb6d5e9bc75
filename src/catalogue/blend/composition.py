"""Blend composition: canonical key, pricing and display name.

Pure functions over a base tea id and a list of add-ins. Nothing here touches
the database, so the rules can be exercised directly:

    >>> composition_key("green-1", [AddIn(ingredient_id="mint", quantity=1),
    ...                             AddIn(ingredient_id="lavender", quantity=0.5)])
    'blend:green-1:lavender:0.5,mint:1'
"""

import json
import math
import uuid
from collections.abc import Iterable, Mapping
from decimal import Decimal

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Float, String

from catalogue.domain import teashop
from shared.model import money
from shared.settings import BlendPricing

BLEND_NAMESPACE = uuid.UUID("6b1f3a52-7c4e-4d0a-9a51-2f1e8d7c6b5a")


@teashop.value_object
class AddIn:
    ingredient_id = String(required=True, max_length=64)
    quantity = Float(required=True)

    @invariant.post
    def quantity_must_be_positive(self):
        if self.quantity is None:
            return
        if not math.isfinite(self.quantity) or self.quantity <= 0:
            raise ValidationError(
                {"quantity": [f"Quantity for ingredient {self.ingredient_id} must be greater than zero"]}
            )

    @property
    def amount(self) -> Decimal:
        return Decimal(str(self.quantity))

    def to_payload(self) -> dict:
        return {"ingredientId": self.ingredient_id, "quantity": float(self.quantity)}


def encode_add_ins(add_ins: Iterable[AddIn]) -> str:
    return json.dumps([add_in.to_payload() for add_in in add_ins])


def decode_add_ins(raw: str | None) -> list[AddIn]:
    if not raw:
        return []
    return [AddIn(ingredient_id=entry["ingredientId"], quantity=entry["quantity"]) for entry in json.loads(raw)]


def format_quantity(quantity: Decimal) -> str:
    """Shortest plain rendering: 1.0 → '1', 0.50 → '0.5', 10 → '10'."""
    return format(quantity.normalize(), "f")


def sorted_add_ins(add_ins: Iterable[AddIn]) -> list[AddIn]:
    return sorted(add_ins, key=lambda add_in: (add_in.ingredient_id, add_in.amount))


def composition_key(base_tea_id: str, add_ins: Iterable[AddIn]) -> str:
    """Order-independent identifier for a blend's exact composition."""
    parts = ",".join(f"{a.ingredient_id}:{format_quantity(a.amount)}" for a in sorted_add_ins(add_ins))
    return f"blend:{base_tea_id}:{parts}"


def blend_product_id(key: str) -> str:
    """Catalogue id of the product materialized for a composition key."""
    return f"blend-{uuid.uuid5(BLEND_NAMESPACE, key)}"


def _decimal(value) -> Decimal | None:
    return None if value is None else Decimal(str(value))


def increment_count(quantity: Decimal, base_amount, increment_amount) -> int:
    """Whole increments above the ingredient's base amount.

    Partial increments are not charged.
    """
    base_amount, increment_amount = _decimal(base_amount), _decimal(increment_amount)
    if not increment_amount or increment_amount <= 0:
        return 0
    extra = max(Decimal(0), quantity - (base_amount or Decimal(0)))
    return math.floor(extra / increment_amount)


def blend_price(add_ins: Iterable[AddIn], ingredients: Mapping[str, object], pricing: BlendPricing) -> Decimal:
    """Price of a new blend: base price plus, per add-in, its base price and whole increments.

    ``ingredients`` maps ingredient id to anything with ``base_amount`` and
    ``increment_amount`` attributes.
    """
    total = pricing.base_price
    for add_in in add_ins:
        ingredient = ingredients[add_in.ingredient_id]
        count = increment_count(add_in.amount, ingredient.base_amount, ingredient.increment_amount)
        total += pricing.add_in_base_price + count * pricing.increment_price
    return money(total)


def blend_name(base_name: str, add_in_count: int) -> str:
    if add_in_count == 0:
        return f"Custom {base_name}"
    plural = "" if add_in_count == 1 else "s"
    return f"Custom {base_name} Blend with {add_in_count} Add-in{plural}"


def blend_description(base_name: str, add_in_count: int) -> str:
    plural = "" if add_in_count == 1 else "s"
    return f"Custom blend with {base_name} base and {add_in_count} add-in{plural}"
