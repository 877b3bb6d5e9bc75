"""Read-only order history for signed-in shoppers."""

import math
from dataclasses import dataclass

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from ordering.order.order import Order
from shared.errors import BadRequestError, NotFoundError

MAX_PER_PAGE = 100


@dataclass(frozen=True)
class OrderPage:
    orders: list[Order]
    page: int
    per_page: int
    total: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.per_page) if self.total else 0

    def to_dict(self) -> dict:
        return {
            "orders": [order.to_payload() for order in self.orders],
            "pagination": {
                "page": self.page,
                "perPage": self.per_page,
                "total": self.total,
                "totalPages": self.total_pages,
            },
        }


def list_orders(user_id: str, page: int = 1, per_page: int = 20, status: str | None = None) -> OrderPage:
    """Newest first, optionally filtered by status."""
    if page < 1 or not 1 <= per_page <= MAX_PER_PAGE:
        raise BadRequestError(f"page must be >= 1 and perPage between 1 and {MAX_PER_PAGE}")

    criteria = {"user_id": user_id}
    if status:
        criteria["status"] = status

    result = (
        current_domain.repository_for(Order)
        ._dao.query.filter(**criteria)
        .order_by("-created_at")
        .offset((page - 1) * per_page)
        .limit(per_page)
        .all()
    )
    return OrderPage(orders=list(result.items), page=page, per_page=per_page, total=result.total)


def get_order(user_id: str, order_id: str) -> Order:
    """An order with its lines and status history. Other users' orders read as missing."""
    try:
        order = current_domain.repository_for(Order).get(order_id)
    except ObjectNotFoundError:
        raise NotFoundError("Order not found") from None
    if order.user_id != user_id:
        raise NotFoundError("Order not found")
    return order
