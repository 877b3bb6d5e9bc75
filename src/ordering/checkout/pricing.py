"""Checkout charges: shipping, tax and discount codes.

Reference data maintained by the admin service. Checkout reads shipping and
tax; it also consumes discount code uses, under a row lock, in the same unit
of work that places the order.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum

from protean.fields import Boolean, DateTime, Float, Integer, String, Text
from protean.utils.globals import current_domain

from ordering.domain import teashop
from shared.model import aware, money, utcnow
from shared.persistence import lock_rows

ZERO = Decimal("0.00")
GLOBAL_REGION = "Global"


class DiscountType(Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


@teashop.aggregate
class ShippingMethod:
    name = String(required=True, max_length=100)
    description = Text()
    price = Float(required=True, min_value=0.0)
    estimated_days = String(max_length=50)
    is_active = Boolean(default=True)
    sort_order = Integer(default=0)


@teashop.aggregate
class TaxRate:
    name = String(required=True, max_length=100)
    region = String(required=True, max_length=100)
    rate = Float(required=True, min_value=0.0)
    is_active = Boolean(default=True)


@teashop.aggregate
class DiscountCode:
    code = String(required=True, max_length=64)
    description = Text()
    discount_type = String(required=True, max_length=20, choices=DiscountType)
    discount_value = Float(required=True, min_value=0.0)
    min_order_amount = Float()
    max_uses = Integer()
    used_count = Integer(default=0)
    valid_from = DateTime(default=utcnow)
    valid_until = DateTime()
    is_active = Boolean(default=True)

    def applies_to(self, subtotal: Decimal, now: datetime) -> bool:
        if not self.is_active:
            return False
        if aware(self.valid_from) > now:
            return False
        if self.valid_until is not None and aware(self.valid_until) < now:
            return False
        if self.max_uses is not None and self.used_count >= self.max_uses:
            return False
        if self.min_order_amount is not None and subtotal < money(self.min_order_amount):
            return False
        return True

    def amount_off(self, subtotal: Decimal) -> Decimal:
        """Discount for this subtotal; never more than the subtotal itself."""
        value = Decimal(str(self.discount_value))
        if self.discount_type == DiscountType.PERCENTAGE.value:
            amount = subtotal * value / Decimal(100)
        else:
            amount = value
        return money(min(amount, subtotal))

    def redeem(self):
        self.used_count = (self.used_count or 0) + 1


def shipping_cost(method_name: str | None) -> Decimal:
    """Price of an active shipping method; unknown or inactive methods ship free."""
    if not method_name:
        return ZERO
    method = current_domain.repository_for(ShippingMethod)._dao.query.filter(name=method_name).all().first
    if method is None or not method.is_active:
        return ZERO
    return money(method.price)


def tax_rate(state: str | None) -> Decimal:
    """Active rate for the region, falling back to the ``Global`` rate, else zero."""
    dao = current_domain.repository_for(TaxRate)._dao
    for region in [state, GLOBAL_REGION] if state else [GLOBAL_REGION]:
        rate = dao.query.filter(region=region, is_active=True).all().first
        if rate is not None:
            return Decimal(str(rate.rate))
    return Decimal(0)


def redeem_discount(code: str | None, subtotal: Decimal) -> tuple[str | None, Decimal]:
    """Lock and consume one use of ``code`` if it applies. Inapplicable codes are ignored.

    Runs inside the checkout's unit of work, so the use is only consumed if
    the order commits.
    """
    if not code:
        return None, ZERO
    locked = lock_rows(DiscountCode, [code], column="code")
    if not locked:
        return None, ZERO
    repo = current_domain.repository_for(DiscountCode)
    discount = repo.get(locked[0])
    if not discount.applies_to(subtotal, utcnow()):
        return None, ZERO
    discount.redeem()
    repo.add(discount)
    return discount.code, discount.amount_off(subtotal)
