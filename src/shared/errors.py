"""Error taxonomy for the teashop engine.

Every domain failure is one of these exceptions. Each carries the HTTP status
it maps to and a stable machine code, so the API layer can render it without
knowing which component raised it.
"""

from typing import Any


class TeashopError(Exception):
    status_code = 500
    code = "INTERNAL_ERROR"

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        payload = {
            "error": self.code,
            "message": self.message,
            "statusCode": self.status_code,
        }
        if self.details:
            payload["details"] = self.details
        return payload


class BadRequestError(TeashopError):
    """Malformed or missing input: no identity, bad composition reference."""

    status_code = 400
    code = "BAD_REQUEST"


class UnauthorizedError(TeashopError):
    status_code = 401
    code = "UNAUTHORIZED"


class NotFoundError(TeashopError):
    status_code = 404
    code = "NOT_FOUND"


class CartError(TeashopError):
    """Domain rule violation: inactive product, empty cart, failed merge."""

    status_code = 400
    code = "CART_ERROR"


class InsufficientStockError(TeashopError):
    status_code = 400
    code = "INSUFFICIENT_STOCK"

    def __init__(self, product_id: str, available: int, requested: int, message: str | None = None):
        if message is None:
            message = f"Insufficient stock for product {product_id}: only {available} available, {requested} requested"
        super().__init__(message)
        self.product_id = product_id
        self.available = available
        self.requested = requested

    def to_dict(self) -> dict[str, Any]:
        payload = super().to_dict()
        payload.update(
            productId=self.product_id,
            available=self.available,
            requested=self.requested,
        )
        return payload
