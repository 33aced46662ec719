"""Entity: Favorite."""

from src.storefront.entities.core._base import Entity


class Favorite(Entity):
    user_id: str
    product_id: str
