"""Tests for blend materialization against a real database."""

import dataclasses
from concurrent.futures import ThreadPoolExecutor
from decimal import Decimal

import pytest
from protean.utils.globals import current_domain

from catalogue.blend.composition import AddIn, encode_add_ins
from catalogue.blend.materializer import MaterializeBlend
from catalogue.product.product import Product
from shared.domain import process, teashop
from shared.errors import BadRequestError, CartError
from shared.settings import BlendPricing, get_settings, use_settings


def materialize(base_tea_id, *add_ins):
    command = MaterializeBlend(
        base_tea_id=base_tea_id,
        add_ins=encode_add_ins(AddIn(ingredient_id=i, quantity=q) for i, q in add_ins),
    )
    return process(command, "materialize blend")


def _blend_count():
    return current_domain.repository_for(Product)._dao.query.filter(category="custom-blend").all().total


@pytest.fixture(autouse=True)
def tea_bar(seed):
    seed.tea_bar()


class TestMaterialize:
    def test_prices_first_materialization(self):
        assert materialize("green-1", ("lavender", 0.5)).unit_price == Decimal("14.24")

    def test_creates_catalogue_product(self, seed):
        product = materialize("green-1", ("lavender", 0.5))

        stored = seed.load(product.id)
        assert stored.name == "Custom Green Sencha Blend with 1 Add-in"
        assert stored.category == "custom-blend"
        assert stored.is_active is True
        assert stored.stock == 999
        assert stored.composition_key == "blend:green-1:lavender:0.5"
        assert set(stored.tag_list) == {"blend:green-1:lavender:0.5", "custom", "blend"}

    def test_base_only_blend(self):
        product = materialize("black-1")
        assert product.name == "Custom Assam"
        assert product.unit_price == Decimal("12.99")

    def test_same_composition_resolves_to_same_product(self):
        first = materialize("green-1", ("mint", 1), ("lavender", 2))
        second = materialize("green-1", ("lavender", 2), ("mint", 1))
        assert first.id == second.id
        assert _blend_count() == 1

    def test_different_quantities_are_different_blends(self):
        first = materialize("green-1", ("mint", 1))
        second = materialize("green-1", ("mint", 2))
        assert first.id != second.id
        assert _blend_count() == 2

    def test_reuse_keeps_original_price(self):
        first = materialize("green-1", ("lavender", 0.5))

        use_settings(dataclasses.replace(get_settings(), blend_pricing=BlendPricing(base_price=Decimal("20.00"))))
        again = materialize("green-1", ("lavender", 0.5))

        assert again.id == first.id
        assert again.unit_price == Decimal("14.24")

    def test_new_blends_use_current_pricing(self):
        use_settings(dataclasses.replace(get_settings(), blend_pricing=BlendPricing(base_price=Decimal("20.00"))))
        assert materialize("black-1").unit_price == Decimal("20.00")

    def test_inactive_blend_product_is_not_reused(self, seed):
        product = materialize("green-1", ("mint", 1))
        seed.update(product.id, is_active=False)

        with pytest.raises(CartError):
            materialize("green-1", ("mint", 1))


class TestMaterializeValidation:
    def test_unknown_base_names_the_id(self):
        with pytest.raises(BadRequestError, match="oolong-9"):
            materialize("oolong-9")

    def test_unknown_add_in_names_the_id(self):
        with pytest.raises(BadRequestError, match="saffron"):
            materialize("green-1", ("saffron", 1))

    def test_add_in_used_as_base(self):
        with pytest.raises(BadRequestError, match="not a base tea"):
            materialize("mint")

    def test_inactive_add_in(self, seed):
        seed.ingredient("chamomile", is_active=False)
        with pytest.raises(CartError, match="chamomile"):
            materialize("green-1", ("chamomile", 1))

    def test_failed_validation_creates_nothing(self):
        with pytest.raises(BadRequestError):
            materialize("green-1", ("mint", 1), ("saffron", 1))
        assert _blend_count() == 0


class TestConcurrentMaterialize:
    def test_simultaneous_requests_share_one_product(self):
        def materialize_in_worker(_):
            with teashop.domain_context():
                return materialize("green-1", ("mint", 3)).id

        with ThreadPoolExecutor(max_workers=6) as pool:
            ids = set(pool.map(materialize_in_worker, range(12)))

        assert len(ids) == 1
        assert _blend_count() == 1
