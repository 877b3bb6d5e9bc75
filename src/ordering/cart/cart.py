"""Shopping cart aggregate and snapshots.

A cart is owned by exactly one identity: a user or a guest session, never
both and never neither. Its id is derived from the owner, so an owner can
only ever have one cart. It is created lazily on the first mutation and
destroyed when checked out or merged into a user's cart. Line items are
unique per product and always hold at least one unit; removing a line
deletes it.
"""

import uuid
from collections.abc import Mapping
from dataclasses import dataclass, field
from decimal import Decimal

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, HasMany, Identifier, Integer, String

from catalogue.product.product import Product
from identity.resolver import Identity, owner_fields
from ordering.domain import teashop
from shared.model import aware, money, utcnow

CART_NAMESPACE = uuid.UUID("0c9e4d2b-5f3a-4e8b-b1d7-6a2f9c8e4b13")


def cart_id_for(identity: Identity) -> str:
    return str(uuid.uuid5(CART_NAMESPACE, identity.key))


@teashop.entity(part_of="Cart")
class CartItem:
    product_id = Identifier(required=True)
    blend_id = Identifier()
    quantity = Integer(required=True, min_value=1)
    added_at = DateTime(default=utcnow)


@teashop.aggregate
class Cart:
    id = Identifier(identifier=True)
    user_id = Identifier()
    session_id = String(max_length=36)
    items = HasMany(CartItem)
    created_at = DateTime(default=utcnow)
    updated_at = DateTime(default=utcnow)

    @invariant.post
    def must_have_exactly_one_owner(self):
        if bool(self.user_id) == bool(self.session_id):
            raise ValidationError({"owner": ["A cart belongs to either a user or a guest session"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(cls, identity: Identity) -> "Cart":
        now = utcnow()
        return cls(id=cart_id_for(identity), created_at=now, updated_at=now, **owner_fields(identity))

    # -------------------------------------------------------------------
    # Line items
    # -------------------------------------------------------------------
    @property
    def lines(self) -> list[CartItem]:
        """Items in the order they were first added."""
        return sorted(self.items, key=lambda item: (aware(item.added_at), item.id))

    def find_item(self, product_id: str) -> CartItem | None:
        return next((i for i in self.items if i.product_id == product_id), None)

    def add_item(self, product_id: str, quantity: int, blend_id: str | None = None) -> CartItem:
        """Add units of a product, accumulating onto an existing line."""
        existing = self.find_item(product_id)
        if existing is not None:
            existing.quantity += quantity
            if existing.blend_id is None:
                existing.blend_id = blend_id
            item = existing
        else:
            item = CartItem(product_id=product_id, quantity=quantity, blend_id=blend_id, added_at=utcnow())
            self.add_items(item)
        self.updated_at = utcnow()
        return item

    def adopt(self, item: CartItem) -> CartItem:
        """Take over another cart's line as it is, blend link and position included."""
        adopted = CartItem(
            product_id=item.product_id,
            blend_id=item.blend_id,
            quantity=item.quantity,
            added_at=item.added_at,
        )
        self.add_items(adopted)
        self.updated_at = utcnow()
        return adopted

    def set_quantity(self, product_id: str, quantity: int) -> CartItem:
        item = self.find_item(product_id)
        item.quantity = quantity
        self.updated_at = utcnow()
        return item

    def remove_item(self, product_id: str) -> bool:
        item = self.find_item(product_id)
        if item is None:
            return False
        self.remove_items(item)
        self.updated_at = utcnow()
        return True

    def clear(self) -> int:
        items = list(self.items)
        for item in items:
            self.remove_items(item)
        self.updated_at = utcnow()
        return len(items)


@dataclass(frozen=True)
class CartLine:
    id: str
    product_id: str
    blend_id: str | None
    quantity: int
    name: str
    price: Decimal
    stock: int
    is_active: bool
    category: str | None

    @classmethod
    def from_item(cls, item: CartItem, product: Product) -> "CartLine":
        return cls(
            id=item.id,
            product_id=item.product_id,
            blend_id=item.blend_id,
            quantity=item.quantity,
            name=product.name,
            price=product.unit_price,
            stock=product.stock,
            is_active=product.is_active,
            category=product.category,
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "productId": self.product_id,
            "blendId": self.blend_id,
            "quantity": self.quantity,
            "product": {
                "id": self.product_id,
                "name": self.name,
                "price": float(self.price),
                "stock": self.stock,
                "isActive": self.is_active,
                "category": self.category,
            },
        }


@dataclass(frozen=True)
class MergeAdjustment:
    """A merged line that was clamped to available stock."""

    product_id: str
    requested: int
    applied: int
    available: int

    def to_dict(self) -> dict:
        return {
            "productId": self.product_id,
            "requested": self.requested,
            "applied": self.applied,
            "available": self.available,
        }


@dataclass(frozen=True)
class CartSnapshot:
    """Point-in-time view of a cart with totals priced from current product rows.

    ``cart_id`` is None when the identity has no cart yet.
    """

    cart_id: str | None
    user_id: str | None
    session_id: str | None
    items: tuple[CartLine, ...] = ()
    adjustments: tuple[MergeAdjustment, ...] = field(default=())

    @classmethod
    def of(cls, cart: Cart, products: Mapping[str, Product], adjustments=()) -> "CartSnapshot":
        """Snapshot of ``cart`` with each line priced from ``products`` (keyed by product id)."""
        return cls(
            cart_id=cart.id,
            user_id=cart.user_id,
            session_id=cart.session_id,
            items=tuple(CartLine.from_item(i, products[i.product_id]) for i in cart.lines),
            adjustments=tuple(adjustments),
        )

    @classmethod
    def empty(cls, identity: Identity) -> "CartSnapshot":
        return cls(cart_id=None, **owner_fields(identity))

    @property
    def subtotal(self) -> Decimal:
        """Sum of price × quantity over lines whose product is still active."""
        return money(sum((line.price * line.quantity for line in self.items if line.is_active), Decimal(0)))

    @property
    def item_count(self) -> int:
        return sum(line.quantity for line in self.items)

    def quantity_of(self, product_id: str) -> int:
        return next((line.quantity for line in self.items if line.product_id == product_id), 0)

    def to_dict(self) -> dict:
        payload = {
            "cart": {
                "id": self.cart_id,
                "userId": self.user_id,
                "sessionId": self.session_id,
                "items": [line.to_dict() for line in self.items],
            },
            "subtotal": float(self.subtotal),
            "itemCount": self.item_count,
        }
        if self.adjustments:
            payload["adjustments"] = [a.to_dict() for a in self.adjustments]
        return payload
