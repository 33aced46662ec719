from dataclasses import dataclass

from loguru import logger
from sqlmodel import Session

from src.storefront.core.errors import ConflictError, NotFoundError, ValidationFailed
from src.storefront.core.services.catalog.product_service import (
    ProductCard,
    ProductService,
)
from src.storefront.core.services.catalog.slug import slugify
from src.storefront.entities.catalog.category import Category, CategoryRepository
from src.storefront.entities.catalog.product import ProductRepository
from src.storefront.runtime.config.config_data import CatalogConfig

MAX_DEPTH = 3


@dataclass
class CategoryDetail:
    category: Category
    children: list[Category]
    products: list[ProductCard]
    product_count: int


@dataclass
class CategoryNode:
    """Category with its resolved parent chain, children and level in the tree."""

    category: Category
    level: int
    parent: Category | None
    grandparent: Category | None
    children: list[Category]
    product_count: int


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None


class CategoryService:
    """Category tree management and category-based product listings."""

    def __init__(self, session: Session, catalog: CatalogConfig | None = None) -> None:
        self._session = session
        self._catalog = catalog or CatalogConfig()
        self._categories = CategoryRepository(session)
        self._products = ProductRepository(session)
        self._product_service = ProductService(session)

    def list_with_counts(self) -> list[tuple[Category, int]]:
        counts = self._products.count_by_category()
        return [
            (category, counts.get(category.id, 0))
            for category in self._categories.list_all()
        ]

    def product_count(self, category_id: str) -> int:
        return self._products.count_by_category().get(category_id, 0)

    def create(
        self,
        *,
        name: str,
        description: str | None = None,
        image: str | None = None,
        is_active: bool = True,
        parent_id: str | None = None,
    ) -> Category:
        name = (name or "").strip()
        if not name:
            raise ValidationFailed("Name is required")

        slug = slugify(name)
        if self._categories.get_by_name(name) or self._categories.slug_taken(slug):
            raise ConflictError("A category with this name already exists")

        parent_id = _clean(parent_id)
        if parent_id and self._categories.get(parent_id) is None:
            raise ValidationFailed("Parent category not found")

        category = self._categories.create(
            Category(
                name=name,
                slug=slug,
                description=_clean(description),
                image=_clean(image),
                is_active=is_active,
                parent_id=parent_id,
                order=self._categories.max_order() + 1,
            )
        )
        logger.info("Created category {} ({})", category.id, category.slug)
        return category

    def get_detail(self, category_id: str) -> CategoryDetail:
        category = self._categories.get(category_id)
        if category is None:
            raise NotFoundError("Category not found")

        products = self._products.list_by_categories([category.id])
        return CategoryDetail(
            category=category,
            children=self._categories.list_children(category.id),
            products=self._product_service.build_cards(products),
            product_count=self.product_count(category.id),
        )

    def update(
        self,
        category_id: str,
        *,
        name: str,
        description: str | None = None,
        image: str | None = None,
        is_active: bool = True,
        parent_id: str | None = None,
        subcategories: list[str] | None = None,
    ) -> Category:
        name = (name or "").strip()
        if not name:
            raise ValidationFailed("Name is required")

        category = self._categories.get(category_id)
        if category is None:
            raise NotFoundError("Category not found")

        if self._categories.get_by_name(name, exclude_id=category_id):
            raise ConflictError("A category with this name already exists")

        slug = slugify(name)
        if self._categories.slug_taken(slug, exclude_id=category_id):
            raise ConflictError("A category with this slug already exists")

        parent_id = _clean(parent_id)
        if parent_id:
            if self._categories.get(parent_id) is None:
                raise ValidationFailed("Parent category not found")
            if parent_id == category_id or parent_id in self._descendant_ids(category_id):
                raise ValidationFailed("A category cannot be its own ancestor")

        category.name = name
        category.slug = slug
        category.description = _clean(description)
        category.image = _clean(image)
        category.is_active = is_active
        category.parent_id = parent_id
        updated = self._categories.update(category)

        for sub_name in subcategories or []:
            sub_name = (sub_name or "").strip()
            if not sub_name or self._categories.get_by_name(sub_name):
                continue
            sub_slug = slugify(sub_name)
            if self._categories.slug_taken(sub_slug):
                raise ConflictError(
                    f"A category with the slug '{sub_slug}' already exists"
                )
            self._categories.create(
                Category(
                    name=sub_name,
                    slug=sub_slug,
                    parent_id=category_id,
                    order=self._categories.max_order() + 1,
                )
            )
            logger.info("Created subcategory {} under {}", sub_name, category_id)

        return updated

    def _descendant_ids(self, category_id: str) -> set[str]:
        found: set[str] = set()
        pending = [category_id]
        while pending:
            for child in self._categories.list_children(pending.pop()):
                if child.id not in found:
                    found.add(child.id)
                    pending.append(child.id)
        return found

    def delete(self, category_id: str) -> Category:
        category = self._categories.get(category_id)
        if category is None:
            raise NotFoundError("Category not found")

        if self.product_count(category_id) > 0:
            raise ConflictError("Cannot delete a category that has products")
        if self._categories.has_children(category_id):
            raise ConflictError("Cannot delete a category that has subcategories")

        self._categories.delete(category_id)
        self._categories.shift_orders_after(category.order)
        logger.info("Deleted category {} ({})", category.id, category.slug)
        return category

    def reorder(self, orders: list[tuple[str, int]]) -> None:
        """Apply new positions; unknown ids abort the whole batch."""
        for category_id, order in orders:
            if not self._categories.set_order(category_id, order):
                raise NotFoundError(f"Category {category_id} not found")
        self._session.flush()

    def tree_nodes(self) -> list[CategoryNode]:
        """Active categories, by name, with parents, children and tree level."""
        counts = self._products.count_by_category()
        everything = {category.id: category for category in self._categories.list_all()}
        nodes: list[CategoryNode] = []
        for category in sorted(everything.values(), key=lambda c: c.name.lower()):
            if not category.is_active:
                continue
            parent = everything.get(category.parent_id) if category.parent_id else None
            grandparent = (
                everything.get(parent.parent_id) if parent and parent.parent_id else None
            )
            level = 1 if parent is None else 2 if grandparent is None else 3
            children = sorted(
                (c for c in everything.values() if c.parent_id == category.id),
                key=lambda c: c.name.lower(),
            )
            nodes.append(
                CategoryNode(
                    category=category,
                    level=level,
                    parent=parent,
                    grandparent=grandparent,
                    children=children,
                    product_count=counts.get(category.id, 0),
                )
            )
        return nodes

    def header_tree(self) -> list[dict]:
        """Active categories nested three levels deep for the site navigation."""
        active = self._categories.list_all(active_only=True)
        by_parent: dict[str | None, list[Category]] = {}
        for category in active:
            by_parent.setdefault(category.parent_id, []).append(category)
        for siblings in by_parent.values():
            siblings.sort(key=lambda c: c.name.lower())

        def build(category: Category, depth: int) -> dict:
            node = {
                "id": category.id,
                "name": category.name,
                "slug": category.slug,
                "href": f"/category/{category.slug}",
            }
            if depth < MAX_DEPTH:
                node["children"] = [
                    build(child, depth + 1) for child in by_parent.get(category.id, [])
                ]
            return node

        return [build(category, 1) for category in by_parent.get(None, [])]

    def products_for_slug(self, slug: str) -> tuple[str, list[ProductCard]]:
        """Products of a category, or of a configured listing grouping several."""
        category = self._categories.get_by_slug(slug)
        if category is not None and category.is_active:
            products = self._products.list_by_categories([category.id])
            return category.name, self._product_service.build_cards(products, with_images=True)

        group = self._catalog.category_groups.get(slug)
        if group is None:
            raise NotFoundError("Category not found")

        matched = self._categories.find_by_name_patterns(group.patterns)
        products = self._products.list_by_categories([c.id for c in matched])
        return group.title, self._product_service.build_cards(products, with_images=True)

