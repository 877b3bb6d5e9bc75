"""Checkout: turn a cart into an order in one unit of work.

``PlaceOrder`` is handled in a single unit of work that:

    1. locks the cart and loads its lines,
    2. locks every product on those lines (ascending id) and re-checks that
       each is still active and in stock,
    3. prices the order (subtotal, shipping, tax, discount) from the locked rows,
    4. writes the order, its lines and its first status entry,
    5. decrements stock and deletes the cart.

Any failure rolls all of it back: no order, stock untouched, cart exactly as
it was. The confirmation email goes out only after the commit.
"""

import json
from decimal import Decimal

from protean import handle
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from identity.contact import EmailAddress
from identity.resolver import GuestIdentity, Identity, owner_fields, owner_of
from inventory.stock.ledger import check_and_reserve, decrement, lock_products
from notifications.confirmation import OrderConfirmationSender
from ordering.cart.management import discard, find_cart
from ordering.checkout.pricing import redeem_discount, shipping_cost, tax_rate
from ordering.domain import logger, teashop
from ordering.order.order import Order, generate_order_id
from shared.domain import process
from shared.errors import BadRequestError, CartError, TeashopError
from shared.model import money
from shared.settings import get_settings

ORDER_ID_ATTEMPTS = 5


@teashop.command(part_of="Order")
class PlaceOrder:
    user_id = Identifier()
    session_id = String(max_length=36)
    guest_email = String(max_length=254)
    shipping_address = Text()  # JSON object
    shipping_method = String(max_length=100)
    customer_notes = Text()
    discount_code = String(max_length=64)


@teashop.command_handler(part_of=Order)
class CheckoutHandler:
    @handle(PlaceOrder)
    def place_order(self, command):
        """Returns the id of the new order."""
        identity = owner_of(command.user_id, command.session_id)
        guest_email = None
        if isinstance(identity, GuestIdentity):
            guest_email = checked_guest_email(command.guest_email)

        cart = find_cart(identity, lock=True)
        if cart is None or not cart.items:
            raise CartError("cart is empty")
        lines = cart.lines

        products = lock_products(line.product_id for line in lines)
        for line in lines:
            product = products.get(line.product_id)
            if product is None or not product.is_active:
                raise CartError(f"Product {product.name if product else line.product_id} is no longer available")
            check_and_reserve(product, line.quantity)

        address = json.loads(command.shipping_address) if command.shipping_address else None
        subtotal = money(sum((products[line.product_id].unit_price * line.quantity for line in lines), Decimal(0)))
        shipping = shipping_cost(command.shipping_method)
        tax = money(subtotal * tax_rate((address or {}).get("state")))
        applied_code, discount = redeem_discount(command.discount_code, subtotal)

        order = Order.place(
            allocate_order_id(),
            [(products[line.product_id], line.quantity) for line in lines],
            {
                "subtotal": subtotal,
                "shipping_cost": shipping,
                "tax_amount": tax,
                "discount_amount": discount,
                "total_amount": money(subtotal + shipping + tax - discount),
            },
            guest_email=guest_email,
            shipping_address=address,
            shipping_method=command.shipping_method,
            customer_notes=command.customer_notes,
            discount_code=applied_code,
            **owner_fields(identity),
        )
        current_domain.repository_for(Order).add(order)

        for line in lines:
            decrement(line.product_id, line.quantity)
        discard(cart)
        return order.id


def checked_guest_email(address: str | None) -> str:
    if not address:
        raise BadRequestError("Guest checkout requires an email address")
    try:
        return EmailAddress(address=address).address
    except ValidationError:
        raise BadRequestError("Invalid email address") from None


def allocate_order_id() -> str:
    """A fresh random order id not used by any existing order.

    Two checkouts drawing the same id in the same instant would collide on
    the primary key at commit; that checkout fails and can be retried.
    """
    repo = current_domain.repository_for(Order)
    prefix = get_settings().order_id_prefix
    for _ in range(ORDER_ID_ATTEMPTS):
        order_id = generate_order_id(prefix)
        try:
            repo.get(order_id)
        except ObjectNotFoundError:
            return order_id
        logger.warning("order_id_collision", order_id=order_id)
    raise CartError("failed to allocate an order id")


def place_order(
    identity: Identity,
    shipping_address: dict | None = None,
    guest_email: str | None = None,
    shipping_method: str | None = None,
    customer_notes: str | None = None,
    discount_code: str | None = None,
    notify_email: str | None = None,
    confirmations: OrderConfirmationSender | None = None,
) -> Order:
    """Place an order for everything in the identity's cart.

    Guests must supply ``guest_email``; the confirmation goes there. For
    users it goes to ``notify_email`` when given.
    """
    command = PlaceOrder(
        guest_email=guest_email if isinstance(identity, GuestIdentity) else None,
        shipping_address=json.dumps(shipping_address) if shipping_address is not None else None,
        shipping_method=shipping_method,
        customer_notes=customer_notes,
        discount_code=discount_code,
        **owner_fields(identity),
    )
    try:
        order_id = process(command, "place order")
    except TeashopError as exc:
        logger.info("checkout_rejected", owner=identity.key, error=exc.code, message=exc.message)
        raise

    order = current_domain.repository_for(Order).get(order_id)
    logger.info(
        "order_placed",
        order_id=order.id,
        owner=identity.key,
        total=str(money(order.total_amount)),
        lines=len(order.items),
    )
    (confirmations or OrderConfirmationSender()).send(order, order.guest_email or notify_email)
    return order
