"""Tests for the error taxonomy."""

from shared.errors import (
    BadRequestError,
    CartError,
    InsufficientStockError,
    NotFoundError,
    TeashopError,
    UnauthorizedError,
)


class TestErrorTaxonomy:
    def test_status_codes(self):
        assert BadRequestError("x").status_code == 400
        assert UnauthorizedError("x").status_code == 401
        assert NotFoundError("x").status_code == 404
        assert CartError("x").status_code == 400
        assert InsufficientStockError("p", available=1, requested=2).status_code == 400

    def test_all_share_a_base(self):
        for error in (BadRequestError("x"), NotFoundError("x"), CartError("x")):
            assert isinstance(error, TeashopError)

    def test_to_dict(self):
        assert CartError("cart is empty").to_dict() == {
            "error": "CART_ERROR",
            "message": "cart is empty",
            "statusCode": 400,
        }

    def test_details_are_included_when_present(self):
        payload = BadRequestError("bad", details={"field": "quantity"}).to_dict()
        assert payload["details"] == {"field": "quantity"}


class TestInsufficientStockError:
    def test_carries_available_and_requested(self):
        error = InsufficientStockError("tea-1", available=2, requested=5)
        assert error.available == 2
        assert error.requested == 5
        assert "only 2 available, 5 requested" in error.message

    def test_to_dict_includes_stock_fields(self):
        payload = InsufficientStockError("tea-1", available=2, requested=5).to_dict()
        assert payload["error"] == "INSUFFICIENT_STOCK"
        assert payload["productId"] == "tea-1"
        assert payload["available"] == 2
        assert payload["requested"] == 5
