"""Cart item management: commands and handler."""

from protean import handle
from protean.fields import Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from catalogue.blend.composition import decode_add_ins
from catalogue.blend.library import find_blend_for_product, save_blend
from catalogue.blend.materializer import materialize
from identity.resolver import owner_of
from inventory.stock.ledger import check_and_reserve
from ordering.cart.cart import Cart, CartSnapshot
from ordering.cart.management import cart_for, find_cart, sellable_product, snapshot_of
from ordering.domain import logger, teashop
from shared.errors import NotFoundError


@teashop.command(part_of="Cart")
class AddToCart:
    user_id = Identifier()
    session_id = String(max_length=36)
    product_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)


@teashop.command(part_of="Cart")
class UpdateCartQuantity:
    user_id = Identifier()
    session_id = String(max_length=36)
    product_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)


@teashop.command(part_of="Cart")
class RemoveFromCart:
    user_id = Identifier()
    session_id = String(max_length=36)
    product_id = Identifier(required=True)


@teashop.command(part_of="Cart")
class ClearCart:
    user_id = Identifier()
    session_id = String(max_length=36)


@teashop.command(part_of="Cart")
class AddBlendToCart:
    user_id = Identifier()
    session_id = String(max_length=36)
    base_tea_id = Identifier(required=True)
    add_ins = Text()  # JSON array of {"ingredientId", "quantity"}
    name = String(max_length=255)


@teashop.command_handler(part_of=Cart)
class ManageCartItemsHandler:
    @handle(AddToCart)
    def add_to_cart(self, command):
        """Add units of a product; an existing line accumulates rather than being replaced."""
        cart = cart_for(owner_of(command.user_id, command.session_id))
        product = sellable_product(command.product_id)
        existing = cart.find_item(product.id)
        check_and_reserve(product, command.quantity, held=existing.quantity if existing else 0)

        item = cart.add_item(product.id, command.quantity)
        current_domain.repository_for(Cart).add(cart)
        logger.info("cart_item_added", cart_id=cart.id, product_id=product.id, quantity=item.quantity)
        return snapshot_of(cart)

    @handle(UpdateCartQuantity)
    def update_cart_quantity(self, command):
        """Set a line's quantity to an absolute value."""
        cart = find_cart(owner_of(command.user_id, command.session_id), lock=True)
        if cart is None or cart.find_item(command.product_id) is None:
            raise NotFoundError(f"Item {command.product_id} not found in cart")

        product = sellable_product(command.product_id)
        check_and_reserve(product, command.quantity)

        cart.set_quantity(command.product_id, command.quantity)
        current_domain.repository_for(Cart).add(cart)
        logger.info("cart_item_updated", cart_id=cart.id, product_id=product.id, quantity=command.quantity)
        return snapshot_of(cart)

    @handle(RemoveFromCart)
    def remove_from_cart(self, command):
        """Delete a line. Removing a line that is not there is not an error."""
        owner = owner_of(command.user_id, command.session_id)
        cart = find_cart(owner, lock=True)
        if cart is None:
            return CartSnapshot.empty(owner)
        if cart.remove_item(command.product_id):
            current_domain.repository_for(Cart).add(cart)
            logger.info("cart_item_removed", cart_id=cart.id, product_id=command.product_id)
        return snapshot_of(cart)

    @handle(ClearCart)
    def clear_cart(self, command):
        """Delete every line. The cart itself is kept."""
        owner = owner_of(command.user_id, command.session_id)
        cart = find_cart(owner, lock=True)
        if cart is None:
            return CartSnapshot.empty(owner)
        removed = cart.clear()
        current_domain.repository_for(Cart).add(cart)
        logger.info("cart_cleared", cart_id=cart.id, removed=removed)
        return snapshot_of(cart)

    @handle(AddBlendToCart)
    def add_blend_to_cart(self, command):
        """Materialize a blend, keep it in the shopper's library and add one unit to the cart.

        Adding the same blend again reuses the saved blend already linked to
        its product instead of saving another copy.
        """
        owner = owner_of(command.user_id, command.session_id)
        add_ins = decode_add_ins(command.add_ins)
        cart = cart_for(owner)
        product = materialize(command.base_tea_id, add_ins)

        existing = cart.find_item(product.id)
        check_and_reserve(product, 1, held=existing.quantity if existing else 0)

        if existing is not None and existing.blend_id:
            blend_id = existing.blend_id
        else:
            blend = find_blend_for_product(owner, product.id) or save_blend(
                owner, command.base_tea_id, add_ins, name=command.name, product_id=product.id
            )
            blend_id = blend.id

        item = cart.add_item(product.id, 1, blend_id=blend_id)
        current_domain.repository_for(Cart).add(cart)
        logger.info(
            "cart_item_added",
            cart_id=cart.id,
            product_id=product.id,
            blend_id=blend_id,
            quantity=item.quantity,
        )
        return snapshot_of(cart)
