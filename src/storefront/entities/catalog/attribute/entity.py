"""Entities: Season and Size, the admin-managed product attribute lists."""

from pydantic import Field

from src.storefront.entities.core._base import Entity


class Season(Entity):
    name: str = Field(min_length=1)


class Size(Entity):
    name: str = Field(min_length=1)
    order: int = 0
