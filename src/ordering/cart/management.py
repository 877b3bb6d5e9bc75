"""Cart lifecycle: get-or-create, reads, and the guest → user merge.

Every mutation runs in a command handler, inside one unit of work. Handlers
lock the owner's cart row (``SELECT ... FOR UPDATE``) before reading its
lines, so concurrent mutations of the same cart are applied one after
another and quantities are never lost. Stock checks are advisory; nothing is
reserved until checkout.
"""

from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Identifier, String
from protean.utils.globals import current_domain
from sqlalchemy.exc import IntegrityError

from catalogue.product.product import Product
from identity.resolver import GuestIdentity, Identity, UserIdentity, owner_of
from ordering.cart.cart import Cart, CartSnapshot, MergeAdjustment, cart_id_for
from ordering.domain import logger, teashop
from shared.errors import CartError, NotFoundError
from shared.persistence import insert_row, lock_rows, savepoint


@teashop.command(part_of="Cart")
class CreateCart:
    user_id = Identifier()
    session_id = String(max_length=36)


@teashop.command(part_of="Cart")
class MergeGuestCart:
    user_id = Identifier(required=True)
    session_id = String(required=True, max_length=36)


@teashop.command_handler(part_of=Cart)
class ManageCartHandler:
    @handle(CreateCart)
    def create_cart(self, command):
        return snapshot_of(cart_for(owner_of(command.user_id, command.session_id)))

    @handle(MergeGuestCart)
    def merge_guest_cart(self, command):
        """Fold a guest cart into the user's cart.

        Lines the user does not have yet are moved across as they are. Lines
        the user already has are summed and clamped to what is in stock, never
        below what the user already held; each clamp is reported back as a
        ``MergeAdjustment``. The guest cart is deleted afterwards.
        """
        user = UserIdentity(user_id=command.user_id)
        guest = GuestIdentity(session_id=command.session_id)
        lock_rows(Cart, [cart_id_for(user), cart_id_for(guest)])

        guest_cart = find_cart(guest)
        if guest_cart is None or not guest_cart.items:
            user_cart = find_cart(user)
            return snapshot_of(user_cart) if user_cart is not None else CartSnapshot.empty(user)

        user_cart = cart_for(user)
        products = load_products(item.product_id for item in guest_cart.items)
        adjustments = []
        moved = 0
        for guest_item in guest_cart.lines:
            existing = user_cart.find_item(guest_item.product_id)
            if existing is None:
                user_cart.adopt(guest_item)
                moved += 1
                continue

            requested = existing.quantity + guest_item.quantity
            available = products[guest_item.product_id].stock
            applied = min(requested, max(available, existing.quantity))
            user_cart.set_quantity(existing.product_id, applied)
            if applied < requested:
                adjustments.append(
                    MergeAdjustment(
                        product_id=existing.product_id,
                        requested=requested,
                        applied=applied,
                        available=available,
                    )
                )
                logger.info(
                    "merge_quantity_clamped",
                    product_id=existing.product_id,
                    requested=requested,
                    applied=applied,
                )

        current_domain.repository_for(Cart).add(user_cart)
        discard(guest_cart)
        logger.info(
            "guest_cart_merged",
            user_id=command.user_id,
            session_id=command.session_id,
            moved=moved,
            adjusted=len(adjustments),
        )
        return snapshot_of(user_cart, adjustments)


def find_cart(identity: Identity, lock: bool = False) -> Cart | None:
    """The identity's cart, or None. ``lock`` requires an active unit of work."""
    cart_id = cart_id_for(identity)
    if lock:
        lock_rows(Cart, [cart_id])
    try:
        return current_domain.repository_for(Cart).get(cart_id)
    except ObjectNotFoundError:
        return None


def cart_for(identity: Identity) -> Cart:
    """Locked cart for the identity, created if it does not exist yet.

    Two first mutations for the same identity race to insert the same cart
    id. The losing insert is rolled back to its savepoint and the winner's
    cart is returned instead.
    """
    cart = find_cart(identity, lock=True)
    if cart is not None:
        return cart

    try:
        with savepoint(Cart):
            insert_row(Cart.create(identity))
    except IntegrityError:
        cart = find_cart(identity, lock=True)
        if cart is None:
            raise
        return cart

    logger.info("cart_created", cart_id=cart_id_for(identity), owner=identity.key)
    return find_cart(identity, lock=True)


def discard(cart: Cart) -> None:
    """Delete a cart and its lines."""
    repo = current_domain.repository_for(Cart)
    cart.clear()
    repo.add(cart)
    repo._dao.delete(cart)


def load_products(product_ids) -> dict[str, Product]:
    repo = current_domain.repository_for(Product)
    return {product_id: repo.get(product_id) for product_id in set(product_ids)}


def snapshot_of(cart: Cart, adjustments=()) -> CartSnapshot:
    return CartSnapshot.of(cart, load_products(item.product_id for item in cart.items), adjustments)


def sellable_product(product_id: str) -> Product:
    try:
        product = current_domain.repository_for(Product).get(product_id)
    except ObjectNotFoundError:
        raise NotFoundError(f"Product {product_id} not found") from None
    if not product.is_active:
        raise CartError(f"Product {product_id} is not available")
    return product


def get_cart(identity: Identity) -> CartSnapshot:
    """Current cart priced from live product rows. Does not create a cart."""
    cart = find_cart(identity)
    if cart is None:
        return CartSnapshot.empty(identity)
    return snapshot_of(cart)
