"""Entity: CartItem, the server-side copy of a signed-in shopper's cart."""

from pydantic import Field

from src.storefront.entities.core._base import Entity


def normalize_option(value: str | None) -> str | None:
    """Blank size/color values collapse to ``None`` so cart keys compare equal."""
    if value is None:
        return None
    value = value.strip()
    return value or None


class CartItem(Entity):
    user_id: str
    product_id: str
    size: str | None = None
    color: str | None = None
    quantity: int = Field(default=1, gt=0)

    @property
    def key(self) -> tuple[str, str | None, str | None]:
        return (self.product_id, self.size, self.color)
