"""FastAPI endpoints for carts and orders."""

from fastapi import APIRouter, Depends, Query

from catalogue.blend.composition import AddIn, encode_add_ins
from identity.dependencies import request_identity, required_user_id
from identity.resolver import Identity, normalize_session_id, owner_fields
from ordering.api.schemas import (
    AddBlendRequest,
    CartItemRequest,
    MergeCartRequest,
    PlaceOrderRequest,
    RemoveItemRequest,
)
from ordering.cart.items import AddBlendToCart, AddToCart, ClearCart, RemoveFromCart, UpdateCartQuantity
from ordering.cart.management import MergeGuestCart, get_cart
from ordering.checkout.coordinator import place_order
from ordering.order.history import get_order, list_orders
from shared.domain import process

cart_router = APIRouter(prefix="/cart", tags=["cart"])
order_router = APIRouter(prefix="/orders", tags=["orders"])


# --- Cart endpoints ---


@cart_router.get("")
async def show_cart(identity: Identity = Depends(request_identity)):
    return get_cart(identity).to_dict()


@cart_router.post("/items")
async def add_item(body: CartItemRequest, identity: Identity = Depends(request_identity)):
    command = AddToCart(product_id=body.product_id, quantity=body.quantity, **owner_fields(identity))
    return process(command, "add item to cart").to_dict()


@cart_router.patch("/items")
async def update_item(body: CartItemRequest, identity: Identity = Depends(request_identity)):
    command = UpdateCartQuantity(product_id=body.product_id, quantity=body.quantity, **owner_fields(identity))
    return process(command, "update cart item").to_dict()


@cart_router.delete("/items")
async def remove_item(body: RemoveItemRequest, identity: Identity = Depends(request_identity)):
    command = RemoveFromCart(product_id=body.product_id, **owner_fields(identity))
    return process(command, "remove cart item").to_dict()


@cart_router.delete("")
async def clear_cart(identity: Identity = Depends(request_identity)):
    return process(ClearCart(**owner_fields(identity)), "clear cart").to_dict()


@cart_router.post("/merge")
async def merge_cart(body: MergeCartRequest, user_id: str = Depends(required_user_id)):
    command = MergeGuestCart(user_id=user_id, session_id=normalize_session_id(body.session_id))
    return process(command, "merge cart").to_dict()


@cart_router.post("/blend")
async def add_blend(body: AddBlendRequest, identity: Identity = Depends(request_identity)):
    add_ins = [AddIn(ingredient_id=a.ingredient_id, quantity=a.quantity) for a in body.add_ins]
    command = AddBlendToCart(
        base_tea_id=body.base_tea_id,
        add_ins=encode_add_ins(add_ins),
        name=body.name,
        **owner_fields(identity),
    )
    return process(command, "add blend to cart").to_dict()


# --- Order endpoints ---


@order_router.post("", status_code=201)
async def create_order(body: PlaceOrderRequest, identity: Identity = Depends(request_identity)):
    order = place_order(
        identity,
        shipping_address=body.shipping_address.model_dump(by_alias=True) if body.shipping_address else None,
        guest_email=body.guest_email,
        shipping_method=body.shipping_method,
        customer_notes=body.customer_notes,
        discount_code=body.discount_code,
        notify_email=body.email,
    )
    return order.to_payload()


@order_router.get("")
async def order_history(
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100, alias="perPage"),
    status: str | None = Query(None),
    user_id: str = Depends(required_user_id),
):
    return list_orders(user_id, page=page, per_page=per_page, status=status).to_dict()


@order_router.get("/{order_id}")
async def show_order(order_id: str, user_id: str = Depends(required_user_id)):
    return get_order(user_id, order_id).to_payload(include_history=True)
