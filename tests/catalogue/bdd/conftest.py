"""Shared BDD fixtures and step definitions for the Catalogue context."""

import pytest
from pytest_bdd import given, parsers, when

from catalogue.blend.composition import AddIn, encode_add_ins
from catalogue.blend.materializer import MaterializeBlend
from shared.domain import process


def parse_recipe(recipe: str) -> list[AddIn]:
    """``"lavender:0.5, mint:1"`` as add-ins."""
    add_ins = []
    for part in filter(None, (chunk.strip() for chunk in recipe.split(","))):
        ingredient_id, quantity = part.split(":")
        add_ins.append(AddIn(ingredient_id=ingredient_id, quantity=float(quantity)))
    return add_ins


@pytest.fixture()
def blends():
    """Products materialized by When steps, in order."""
    return []


@given("the tea bar is stocked")
def tea_bar_is_stocked(seed):
    seed.tea_bar()


@when(parsers.cfparse('a blend of "{base_tea_id}" with "{recipe}" is made'))
def blend_is_made(blends, base_tea_id, recipe):
    command = MaterializeBlend(base_tea_id=base_tea_id, add_ins=encode_add_ins(parse_recipe(recipe)))
    blends.append(process(command, "materialize blend"))
