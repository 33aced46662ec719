"""Entities grouped by business concept.

Each entity package holds three modules:
- entity.py: pydantic domain model with business rules
- table.py: SQLModel persistence model
- repository.py: data access layer

Importing this package registers every table on ``SQLModel.metadata``.
"""

from .catalog.attribute import Season, SeasonTable, Size, SizeTable
from .catalog.category import Category, CategoryRepository, CategoryTable
from .catalog.product import (
    Product,
    ProductImage,
    ProductImageTable,
    ProductRepository,
    ProductTable,
    ProductVariant,
    ProductVariantTable,
)
from .core.user import User, UserRepository, UserTable
from .marketing.subscriber import NewsletterSubscriber, NewsletterSubscriberTable
from .sales.cart import CartItem, CartItemTable, CartRepository
from .sales.coupon import Coupon, CouponRepository, CouponTable
from .sales.favorite import Favorite, FavoriteRepository, FavoriteTable
from .sales.order import Order, OrderItem, OrderItemTable, OrderRepository, OrderTable

__all__ = [
    "User",
    "UserTable",
    "UserRepository",
    "Category",
    "CategoryTable",
    "CategoryRepository",
    "Product",
    "ProductVariant",
    "ProductImage",
    "ProductTable",
    "ProductVariantTable",
    "ProductImageTable",
    "ProductRepository",
    "Season",
    "SeasonTable",
    "Size",
    "SizeTable",
    "Order",
    "OrderItem",
    "OrderTable",
    "OrderItemTable",
    "OrderRepository",
    "Coupon",
    "CouponTable",
    "CouponRepository",
    "Favorite",
    "FavoriteTable",
    "FavoriteRepository",
    "CartItem",
    "CartItemTable",
    "CartRepository",
    "NewsletterSubscriber",
    "NewsletterSubscriberTable",
]
