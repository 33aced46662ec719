"""Entity package: Product with its variants and images."""

from .entity import (
    Product,
    ProductImage,
    ProductVariant,
    sale_price_for,
    total_stock,
)
from .repository import ProductQuery, ProductRepository
from .table import ProductImageTable, ProductTable, ProductVariantTable

__all__ = [
    "Product",
    "ProductImage",
    "ProductVariant",
    "ProductQuery",
    "ProductRepository",
    "ProductTable",
    "ProductVariantTable",
    "ProductImageTable",
    "sale_price_for",
    "total_stock",
]
