"""Entities: Product, ProductVariant, ProductImage."""

from datetime import datetime

from pydantic import Field

from src.storefront.entities.core._base import Entity


class ProductVariant(Entity):
    """A size/colour combination of a product with its own stock."""

    product_id: str
    size: str | None = None
    color: str | None = None
    stock: int = Field(default=0, ge=0)

    def matches(self, size: str | None, color: str | None) -> bool:
        """Trimmed, case-insensitive match on the attributes the caller supplies."""
        if size and (self.size or "").strip().lower() != size.strip().lower():
            return False
        if color and (self.color or "").strip().lower() != color.strip().lower():
            return False
        return True


class ProductImage(Entity):
    product_id: str
    variant_id: str | None = None
    url: str
    public_id: str | None = None
    order: int = 0


class Product(Entity):
    """Sellable catalog item.

    ``stock`` is only authoritative for products without variants; otherwise
    the stock shown to shoppers is the sum of the variant stock.
    Soft-deleted products keep ``deleted_at`` and are hidden from the storefront.
    """

    name: str
    description: str | None = None
    price: float = Field(ge=0)
    old_price: float | None = None
    sale_price: float | None = None
    is_on_sale: bool = False
    sale_percentage: int | None = None
    stock: int = 0
    category_id: str
    is_featured: bool = False
    is_active: bool = True
    material: str | None = None
    brand: str | None = None
    season: str | None = None
    gender: str | None = None
    deleted_at: datetime | None = None

    @property
    def effective_price(self) -> float:
        if self.is_on_sale and self.sale_price is not None:
            return self.sale_price
        return self.price

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None


def total_stock(product: Product, variants: list[ProductVariant]) -> int:
    if not variants:
        return product.stock
    return sum(variant.stock for variant in variants)


def sale_price_for(price: float, percentage: int | None) -> float | None:
    if not percentage:
        return None
    return round(price * (1 - percentage / 100), 2)
