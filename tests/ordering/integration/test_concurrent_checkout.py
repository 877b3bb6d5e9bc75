"""Concurrent checkouts against a real database.

On SQLite every transaction takes the database write lock up front; on
PostgreSQL checkouts lock only the product rows they touch.
"""

import os
import time
from concurrent.futures import ThreadPoolExecutor
from uuid import uuid4

import pytest
from protean.core.unit_of_work import UnitOfWork
from protean.utils.globals import current_domain

from identity.resolver import GuestIdentity, UserIdentity, owner_fields
from inventory.stock.ledger import lock_products
from ordering.cart.items import AddToCart
from ordering.cart.management import get_cart
from ordering.checkout.coordinator import place_order
from ordering.order.order import Order
from shared.domain import process, teashop
from shared.errors import InsufficientStockError

BLOCKED_FOR = 0.5
POSTGRES = os.environ.get("DATABASE_URL", "").startswith("postgresql")

ADA = UserIdentity(user_id="user-ada")
BOB = UserIdentity(user_id="user-bob")


def add(identity, product_id, quantity):
    return process(AddToCart(product_id=product_id, quantity=quantity, **owner_fields(identity)), "add item")


def _order_count():
    return current_domain.repository_for(Order)._dao.query.all().total


def checkout_in_worker(identity, **kwargs):
    with teashop.domain_context():
        try:
            return place_order(identity, **kwargs)
        except InsufficientStockError:
            return None


class TestLastUnit:
    def test_only_one_shopper_gets_the_last_units(self, seed, email):
        seed.product("first-flush", stock=5)

        shoppers = [UserIdentity(user_id=f"user-{n}") for n in range(6)]
        for shopper in shoppers:
            add(shopper, "first-flush", 5)

        with ThreadPoolExecutor(max_workers=6) as pool:
            results = list(pool.map(checkout_in_worker, shoppers))

        winners = [r for r in results if r is not None]
        assert len(winners) == 1
        assert seed.load("first-flush").stock == 0
        assert _order_count() == 1

        losers = [s for s, r in zip(shoppers, results) if r is None]
        for loser in losers:
            assert get_cart(loser).quantity_of("first-flush") == 5

    def test_stock_is_conserved_across_many_checkouts(self, seed, email):
        seed.product("sencha", stock=12)
        seed.product("assam", stock=12)

        guests = [GuestIdentity(session_id=str(uuid4())) for _ in range(10)]
        for n, guest in enumerate(guests):
            # Alternate line order so checkouts lock the same rows from different carts.
            first, second = ("sencha", "assam") if n % 2 else ("assam", "sencha")
            add(guest, first, 2)
            add(guest, second, 1)

        def attempt(identity):
            return checkout_in_worker(identity, guest_email="guest@example.com")

        with ThreadPoolExecutor(max_workers=10) as pool:
            orders = [o for o in pool.map(attempt, guests) if o is not None]

        sold = {"sencha": 0, "assam": 0}
        for order in orders:
            for item in order.items:
                sold[item.product_id] += item.quantity

        assert seed.load("sencha").stock == 12 - sold["sencha"]
        assert seed.load("assam").stock == 12 - sold["assam"]
        assert seed.load("sencha").stock >= 0
        assert seed.load("assam").stock >= 0
        assert _order_count() == len(orders)
        assert len(email.sent_emails) == len(orders)


class TestProductLocks:
    def test_checkout_waits_for_a_held_product_lock(self, seed, email):
        seed.product("sencha", stock=3)
        add(ADA, "sencha", 2)

        with ThreadPoolExecutor(max_workers=1) as pool:
            with UnitOfWork():
                lock_products(["sencha"])
                pending = pool.submit(checkout_in_worker, ADA)
                time.sleep(BLOCKED_FOR)
                assert not pending.done()

            order = pending.result(timeout=30)

        assert order is not None
        assert seed.load("sencha").stock == 1

    @pytest.mark.skipif(not POSTGRES, reason="row-level locks need DATABASE_URL=postgresql://...")
    def test_lock_on_one_product_does_not_block_another(self, seed, email):
        seed.product("sencha", stock=3)
        seed.product("assam", stock=3)
        add(BOB, "assam", 1)

        with ThreadPoolExecutor(max_workers=1) as pool:
            with UnitOfWork():
                lock_products(["sencha"])
                order = pool.submit(checkout_in_worker, BOB).result(timeout=10)
                assert order is not None

        assert seed.load("assam").stock == 2
        assert seed.load("sencha").stock == 3
