"""Product, variant and image database table models."""

from datetime import datetime

from sqlmodel import Field

from src.storefront.entities.core._base import EntityTable, Money


class ProductTable(EntityTable, table=True):
    """Database persistence model for products."""

    name: str = Field(index=True)
    description: str | None = None
    price: float = Field(sa_type=Money)
    old_price: float | None = Field(default=None, sa_type=Money)
    sale_price: float | None = Field(default=None, sa_type=Money)
    is_on_sale: bool = Field(default=False)
    sale_percentage: int | None = None
    stock: int = Field(default=0)
    category_id: str = Field(foreign_key="categorytable.id", index=True)
    is_featured: bool = Field(default=False)
    is_active: bool = Field(default=True, index=True)
    material: str | None = None
    brand: str | None = None
    season: str | None = None
    gender: str | None = None
    deleted_at: datetime | None = Field(default=None, index=True)


class ProductVariantTable(EntityTable, table=True):
    product_id: str = Field(foreign_key="producttable.id", index=True)
    size: str | None = None
    color: str | None = None
    stock: int = Field(default=0)


class ProductImageTable(EntityTable, table=True):
    product_id: str = Field(foreign_key="producttable.id", index=True)
    variant_id: str | None = Field(
        default=None, foreign_key="productvarianttable.id", index=True
    )
    url: str
    public_id: str | None = None
    order: int = Field(default=0)
