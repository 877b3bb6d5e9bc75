"""Order aggregate.

An order is written once, at checkout, and this service never changes it
afterwards. Line prices and names are copied from the product at the moment
of checkout so later catalogue edits cannot alter a placed order.
"""

import json
import secrets
import string
from datetime import datetime
from decimal import Decimal

from protean.fields import DateTime, Float, HasMany, Identifier, Integer, String, Text

from ordering.domain import teashop
from shared.model import aware, money, utcnow

PENDING = "pending"

_ORDER_ID_ALPHABET = string.ascii_uppercase + string.digits


def generate_order_id(prefix: str, now: datetime | None = None) -> str:
    """``{prefix}-YYMMDD-XXXX``, e.g. ``ALC-251221-A3F9``."""
    now = now or utcnow()
    suffix = "".join(secrets.choice(_ORDER_ID_ALPHABET) for _ in range(4))
    return f"{prefix}-{now:%y%m%d}-{suffix}"


@teashop.entity(part_of="Order")
class OrderItem:
    product_id = Identifier(required=True)
    product_name = String(required=True, max_length=255)
    quantity = Integer(required=True, min_value=1)
    price = Float(required=True, min_value=0.0)
    line_number = Integer(default=0)

    @property
    def unit_price(self) -> Decimal:
        return money(self.price)

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity

    def to_payload(self) -> dict:
        return {
            "id": self.id,
            "productId": self.product_id,
            "name": self.product_name,
            "quantity": self.quantity,
            "price": float(self.unit_price),
            "lineTotal": float(self.line_total),
        }


@teashop.entity(part_of="Order")
class OrderStatusLog:
    from_status = String(max_length=32)
    to_status = String(required=True, max_length=32)
    changed_by = Identifier()
    notes = Text()
    created_at = DateTime(default=utcnow)

    def to_payload(self) -> dict:
        return {
            "fromStatus": self.from_status,
            "toStatus": self.to_status,
            "changedBy": self.changed_by,
            "notes": self.notes,
            "createdAt": aware(self.created_at).isoformat(),
        }


@teashop.aggregate
class Order:
    id = Identifier(identifier=True)
    user_id = Identifier()
    session_id = String(max_length=36)
    guest_email = String(max_length=254)
    status = String(max_length=32, default=PENDING)
    subtotal = Float(required=True)
    shipping_method = String(max_length=100)
    shipping_cost = Float(default=0.0)
    tax_amount = Float(default=0.0)
    discount_code = String(max_length=64)
    discount_amount = Float(default=0.0)
    total_amount = Float(required=True)
    shipping_address = Text()  # JSON object
    customer_notes = Text()
    items = HasMany(OrderItem)
    status_logs = HasMany(OrderStatusLog)
    created_at = DateTime(default=utcnow)
    updated_at = DateTime(default=utcnow)

    @classmethod
    def place(cls, order_id, lines, charges, user_id=None, session_id=None, guest_email=None, **details):
        """A pending order with its lines and the initial status log entry.

        ``lines`` are ``(product, quantity)`` pairs priced at the product's
        current price; ``charges`` holds the computed money fields.
        """
        now = utcnow()
        address = details.pop("shipping_address", None)
        order = cls(
            id=order_id,
            user_id=user_id,
            session_id=session_id,
            guest_email=guest_email,
            status=PENDING,
            shipping_address=json.dumps(address) if address is not None else None,
            created_at=now,
            updated_at=now,
            **{name: float(value) for name, value in charges.items()},
            **details,
        )
        for number, (product, quantity) in enumerate(lines, start=1):
            order.add_items(
                OrderItem(
                    product_id=product.id,
                    product_name=product.name,
                    quantity=quantity,
                    price=float(product.unit_price),
                    line_number=number,
                )
            )
        order.add_status_logs(
            OrderStatusLog(
                from_status=None,
                to_status=PENDING,
                changed_by=user_id,
                notes="Guest order placed" if user_id is None else "Order placed",
                created_at=now,
            )
        )
        return order

    @property
    def is_guest(self) -> bool:
        return self.user_id is None

    @property
    def address(self) -> dict | None:
        return json.loads(self.shipping_address) if self.shipping_address else None

    @property
    def lines(self) -> list[OrderItem]:
        return sorted(self.items, key=lambda item: item.line_number)

    @property
    def history(self) -> list[OrderStatusLog]:
        """Status changes, newest first."""
        return sorted(self.status_logs, key=lambda log: aware(log.created_at), reverse=True)

    def to_payload(self, include_history: bool = False) -> dict:
        payload = {
            "id": self.id,
            "userId": self.user_id,
            "guestEmail": self.guest_email,
            "status": self.status,
            "subtotal": float(money(self.subtotal)),
            "shippingMethod": self.shipping_method,
            "shippingCost": float(money(self.shipping_cost)),
            "taxAmount": float(money(self.tax_amount)),
            "discountCode": self.discount_code,
            "discountAmount": float(money(self.discount_amount)),
            "totalAmount": float(money(self.total_amount)),
            "shippingAddress": self.address,
            "customerNotes": self.customer_notes,
            "items": [item.to_payload() for item in self.lines],
            "createdAt": aware(self.created_at).isoformat(),
        }
        if include_history:
            payload["statusLogs"] = [log.to_payload() for log in self.history]
        return payload
