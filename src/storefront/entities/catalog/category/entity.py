"""Entity: Category."""

from pydantic import Field

from src.storefront.entities.core._base import Entity


class Category(Entity):
    """Node of the catalog tree.

    Categories nest through ``parent_id``; the storefront shows three levels.
    ``order`` is the admin-controlled position among all categories.
    """

    name: str = Field(description="Unique display name")
    slug: str = Field(description="URL slug derived from the name")
    description: str | None = None
    image: str | None = None
    is_active: bool = True
    order: int = 0
    parent_id: str | None = None
