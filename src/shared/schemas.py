"""Pydantic base for request bodies, which use camelCase JSON keys."""

import math

from pydantic import BaseModel
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = {
        "alias_generator": to_camel,
        "populate_by_name": True,
        "extra": "ignore",
    }


def round_quantity(value):
    """Round fractional quantities half-up to whole units before validation."""
    if isinstance(value, float) and math.isfinite(value):
        return math.floor(value + 0.5)
    return value
