"""Pydantic request schemas for the cart and order API."""

from __future__ import annotations

from pydantic import Field, field_validator

from shared.schemas import CamelModel, round_quantity

# --- Cart ---


class CartItemRequest(CamelModel):
    model_config = {
        "json_schema_extra": {"examples": [{"productId": "sencha-green-100g", "quantity": 2}]},
    }

    product_id: str = Field(..., min_length=1, max_length=64)
    quantity: int = Field(..., ge=1)

    @field_validator("quantity", mode="before")
    @classmethod
    def whole_quantity(cls, value):
        return round_quantity(value)


class RemoveItemRequest(CamelModel):
    product_id: str = Field(..., min_length=1, max_length=64)


class MergeCartRequest(CamelModel):
    session_id: str = Field(..., min_length=1, max_length=64)


class AddInRequest(CamelModel):
    ingredient_id: str = Field(..., min_length=1, max_length=64)
    quantity: float = Field(..., gt=0)


class AddBlendRequest(CamelModel):
    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "baseTeaId": "green-1",
                    "addIns": [{"ingredientId": "lavender", "quantity": 0.5}],
                    "name": "Evening Calm",
                }
            ]
        }
    }

    base_tea_id: str = Field(..., min_length=1, max_length=64)
    add_ins: list[AddInRequest] = Field(default_factory=list, max_length=20)
    name: str | None = Field(None, max_length=100)


# --- Orders ---


class ShippingAddress(CamelModel):
    first_name: str = Field(..., max_length=100)
    last_name: str = Field(..., max_length=100)
    address_line1: str = Field(..., max_length=255)
    address_line2: str | None = Field(None, max_length=255)
    city: str = Field(..., max_length=100)
    state: str = Field(..., max_length=100)
    zip_code: str = Field(..., max_length=20)
    country: str = Field(..., max_length=100)
    phone: str | None = Field(None, max_length=30)


class PlaceOrderRequest(CamelModel):
    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "guestEmail": "guest@example.com",
                    "shippingAddress": {
                        "firstName": "Ada",
                        "lastName": "Lovelace",
                        "addressLine1": "12 Leaf Lane",
                        "city": "Portland",
                        "state": "OR",
                        "zipCode": "97201",
                        "country": "US",
                    },
                    "shippingMethod": "Standard",
                }
            ]
        }
    }

    guest_email: str | None = Field(None, max_length=255)
    email: str | None = Field(None, max_length=255)
    shipping_address: ShippingAddress | None = None
    shipping_method: str | None = Field(None, max_length=100)
    customer_notes: str | None = Field(None, max_length=1000)
    discount_code: str | None = Field(None, max_length=64)
