from .attribute_service import AttributeService
from .category_service import CategoryDetail, CategoryNode, CategoryService
from .product_service import (
    DeleteOutcome,
    ImageInput,
    Page,
    ProductCard,
    ProductDetail,
    ProductService,
    VariantDetail,
    VariantInput,
)
from .seed import seed_categories, seed_seasons, seed_sizes
from .slug import slugify

__all__ = [
    "AttributeService",
    "CategoryDetail",
    "CategoryNode",
    "CategoryService",
    "DeleteOutcome",
    "ImageInput",
    "Page",
    "ProductCard",
    "ProductDetail",
    "ProductService",
    "VariantDetail",
    "VariantInput",
    "seed_categories",
    "seed_seasons",
    "seed_sizes",
    "slugify",
]
