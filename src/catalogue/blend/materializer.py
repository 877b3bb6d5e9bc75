"""Materialize custom blends as catalogue products.

The same composition always resolves to the same product. The first shopper
to order a composition creates it, priced from the current blend pricing;
everyone after reuses it at that price.

Two shoppers can submit the same new composition at the same time. Both miss
the lookup and both insert, and because the product id is derived from the
composition key only one insert can win. The loser's insert runs inside a
SAVEPOINT, so it rolls back alone and the loser reads the winner's row.
"""

import json
from collections.abc import Iterable

from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Identifier, Text
from protean.utils.globals import current_domain
from sqlalchemy.exc import IntegrityError

from catalogue.blend.composition import (
    AddIn,
    blend_description,
    blend_name,
    blend_price,
    blend_product_id,
    composition_key,
    decode_add_ins,
    sorted_add_ins,
)
from catalogue.domain import CUSTOM_BLEND_CATEGORY, logger, teashop
from catalogue.ingredient.ingredient import Ingredient
from catalogue.product.product import Product
from shared.errors import BadRequestError, CartError
from shared.persistence import insert_row, savepoint
from shared.settings import get_settings


@teashop.command(part_of="Product")
class MaterializeBlend:
    base_tea_id = Identifier(required=True)
    add_ins = Text()  # JSON array of {"ingredientId", "quantity"}


@teashop.command_handler(part_of=Product)
class BlendMaterializationHandler:
    @handle(MaterializeBlend)
    def materialize_blend(self, command):
        return materialize(command.base_tea_id, decode_add_ins(command.add_ins))


def materialize(base_tea_id: str, add_ins: Iterable[AddIn]) -> Product:
    """Resolve a composition to its product, creating it on first use.

    Runs inside the caller's unit of work.
    """
    add_ins = sorted_add_ins(add_ins)
    base, ingredients = _load_ingredients(base_tea_id, add_ins)
    key = composition_key(base_tea_id, add_ins)
    product_id = blend_product_id(key)

    product = _find(product_id)
    if product is not None:
        return _reuse(product)

    pricing = get_settings().blend_pricing
    product = Product(
        id=product_id,
        name=blend_name(base.name, len(add_ins)),
        description=blend_description(base.name, len(add_ins)),
        price=float(blend_price(add_ins, ingredients, pricing)),
        stock=pricing.stock,
        is_active=True,
        category=CUSTOM_BLEND_CATEGORY,
        tags=json.dumps([key, "custom", "blend"]),
        composition_key=key,
    )
    try:
        with savepoint(Product):
            insert_row(product)
    except IntegrityError:
        winner = _find(product_id)
        if winner is None:
            raise
        return _reuse(winner)

    logger.info("blend_materialized", product_id=product_id, composition_key=key, price=str(product.unit_price))
    return current_domain.repository_for(Product).get(product_id)


def _find(product_id: str) -> Product | None:
    try:
        return current_domain.repository_for(Product).get(product_id)
    except ObjectNotFoundError:
        return None


def _reuse(product: Product) -> Product:
    if not product.is_active:
        raise CartError(f"Custom blend {product.id} is no longer available")
    logger.info("blend_reused", product_id=product.id, composition_key=product.composition_key)
    return product


def _load_ingredients(base_tea_id: str, add_ins: list[AddIn]) -> tuple[Ingredient, dict[str, Ingredient]]:
    repo = current_domain.repository_for(Ingredient)
    found = {}
    for ingredient_id in {base_tea_id} | {a.ingredient_id for a in add_ins}:
        try:
            found[ingredient_id] = repo.get(ingredient_id)
        except ObjectNotFoundError:
            continue

    base = found.get(base_tea_id)
    if base is None:
        raise BadRequestError(f"Unknown base tea: {base_tea_id}")
    if not base.is_base:
        raise BadRequestError(f"Ingredient {base_tea_id} is not a base tea")
    if not base.is_active:
        raise CartError(f"Base tea {base_tea_id} is not available")

    for add_in in add_ins:
        ingredient = found.get(add_in.ingredient_id)
        if ingredient is None:
            raise BadRequestError(f"Unknown ingredient: {add_in.ingredient_id}")
        if not ingredient.is_active:
            raise CartError(f"Ingredient {add_in.ingredient_id} is not available")

    return base, found
