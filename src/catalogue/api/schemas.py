"""Pydantic request schemas for the saved blend API."""

from __future__ import annotations

from pydantic import Field

from shared.schemas import CamelModel


class BlendAddIn(CamelModel):
    ingredient_id: str = Field(..., min_length=1, max_length=64)
    quantity: float = Field(..., gt=0)


class SaveBlendRequest(CamelModel):
    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "name": "Morning Mint",
                    "baseTeaId": "green-1",
                    "addIns": [{"ingredientId": "mint", "quantity": 1}],
                }
            ]
        }
    }

    base_tea_id: str = Field(..., min_length=1, max_length=64)
    add_ins: list[BlendAddIn] = Field(default_factory=list, max_length=20)
    name: str | None = Field(None, max_length=100)
    product_id: str | None = Field(None, max_length=64)


class RenameBlendRequest(CamelModel):
    name: str = Field(..., min_length=1, max_length=100)


class MigrateBlendsRequest(CamelModel):
    session_id: str = Field(..., min_length=1, max_length=64)
