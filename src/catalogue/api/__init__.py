"""Catalogue API package."""

from catalogue.api.routes import blend_router

__all__ = ["blend_router"]
