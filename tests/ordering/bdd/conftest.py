"""Shared BDD fixtures and step definitions for the Ordering context."""

import pytest
from pytest_bdd import given, parsers, then, when

from identity.resolver import GuestIdentity, UserIdentity, owner_fields
from ordering.cart.items import AddToCart
from ordering.cart.management import get_cart
from shared.domain import process
from shared.errors import TeashopError

SESSION = "3f2b8c1e-9a4d-4e7f-8b6a-1c2d3e4f5a6b"


def add_to_cart(identity, product_id, quantity):
    command = AddToCart(product_id=product_id, quantity=quantity, **owner_fields(identity))
    return process(command, "add item to cart")


@pytest.fixture()
def error():
    """Container for the domain error raised by a When step."""
    return {"exc": None}


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse('the tea "{product_id}" has {stock:d} in stock'))
def tea_in_stock(seed, product_id, stock):
    seed.product(product_id, stock=stock)


@given("a guest shopper", target_fixture="shopper")
def guest_shopper():
    return GuestIdentity(session_id=SESSION)


@given(parsers.cfparse('the signed-in shopper "{user_id}"'), target_fixture="shopper")
def signed_in_shopper(user_id):
    return UserIdentity(user_id=user_id)


@given(parsers.cfparse('the shopper has {quantity:d} of "{product_id}" in the cart'))
def shopper_has_in_cart(shopper, product_id, quantity):
    add_to_cart(shopper, product_id, quantity)


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
@when(parsers.cfparse('the shopper adds {quantity:d} of "{product_id}"'))
def shopper_adds(shopper, product_id, quantity, error):
    try:
        add_to_cart(shopper, product_id, quantity)
    except TeashopError as exc:
        error["exc"] = exc


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the cart holds {quantity:d} of "{product_id}"'))
def cart_holds(shopper, product_id, quantity):
    assert get_cart(shopper).quantity_of(product_id) == quantity


@then("the cart is empty")
def cart_is_empty(shopper):
    assert get_cart(shopper).item_count == 0
