"""Catalog and user rows shared by service and API tests."""

import pytest
from sqlmodel import Session

from src.storefront.entities.catalog.category import Category, CategoryRepository
from src.storefront.entities.catalog.product import (
    Product,
    ProductImage,
    ProductRepository,
    ProductVariant,
)
from src.storefront.entities.core.user import User, UserRepository, UserRole


@pytest.fixture
def customer(session: Session) -> User:
    return UserRepository(session).create(
        User(clerk_id="user_customer", email="ana@example.com", name="Ana Silva")
    )


@pytest.fixture
def admin(session: Session) -> User:
    return UserRepository(session).create(
        User(
            clerk_id="user_admin",
            email="admin@example.com",
            name="Store Admin",
            role=UserRole.ADMIN,
        )
    )


@pytest.fixture
def category(session: Session) -> Category:
    return CategoryRepository(session).create(
        Category(name="Vestidos", slug="vestidos", order=1)
    )


@pytest.fixture
def product(session: Session, category: Category) -> Product:
    """A product without variants: its own stock is authoritative."""
    repo = ProductRepository(session)
    created = repo.create(
        Product(name="Vestido Linho", price=40.0, stock=10, category_id=category.id)
    )
    repo.add_image(
        ProductImage(
            product_id=created.id, url="https://img.test/linho.jpg", public_id="p/linho"
        )
    )
    return created


@pytest.fixture
def variant_product(session: Session, category: Category) -> Product:
    """A product sold in M/Azul (3 units) and L/Azul (0 units)."""
    repo = ProductRepository(session)
    created = repo.create(
        Product(name="Vestido Midi", price=55.0, stock=0, category_id=category.id)
    )
    repo.add_variant(ProductVariant(product_id=created.id, size="M", color="Azul", stock=3))
    repo.add_variant(ProductVariant(product_id=created.id, size="L", color="Azul", stock=0))
    return created
