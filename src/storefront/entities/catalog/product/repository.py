from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Literal

from sqlalchemy import exists, func, or_
from sqlmodel import Session, col, select

from src.storefront.entities.catalog.category.table import CategoryTable
from src.storefront.entities.catalog.product.entity import (
    Product,
    ProductImage,
    ProductVariant,
)
from src.storefront.entities.catalog.product.table import (
    ProductImageTable,
    ProductTable,
    ProductVariantTable,
)
from src.storefront.entities.core._base import utcnow

SortKey = Literal["price-asc", "price-desc", "name", "popular", "newest"]


@dataclass
class ProductQuery:
    """Filters shared by the storefront listing and search endpoints."""

    text: str | None = None
    search_related: bool = False
    category_slug: str | None = None
    category_ids: list[str] | None = None
    min_price: float | None = None
    max_price: float | None = None
    featured: bool | None = None
    brand: str | None = None
    material: str | None = None
    season: str | None = None
    gender: str | None = None
    in_stock: bool = False
    on_sale: bool = False
    active_only: bool = True
    sort: SortKey = "newest"
    offset: int = 0
    limit: int | None = None


class ProductRepository:
    """Data-access layer for products, their variants and images."""

    def __init__(self, session: Session) -> None:
        self._session = session

    # --- products ---

    def get(self, product_id: str) -> Product | None:
        row = self._session.get(ProductTable, product_id)
        if row is None:
            return None
        return Product.model_validate(row, from_attributes=True)

    def get_many(self, product_ids: Iterable[str]) -> dict[str, Product]:
        ids = list(set(product_ids))
        if not ids:
            return {}
        rows = self._session.exec(
            select(ProductTable).where(col(ProductTable.id).in_(ids))
        ).all()
        return {row.id: Product.model_validate(row, from_attributes=True) for row in rows}

    def create(self, product: Product) -> Product:
        row = ProductTable(**product.model_dump())
        self._session.add(row)
        self._session.flush()
        self._session.refresh(row)
        return Product.model_validate(row, from_attributes=True)

    def update(self, product: Product) -> Product:
        row = self._session.get(ProductTable, product.id)
        if row is None:
            raise ValueError(f"Product with id {product.id} not found")

        for field, value in product.model_dump(exclude={"id", "created_at"}).items():
            setattr(row, field, value)
        row.updated_at = utcnow()

        self._session.add(row)
        self._session.flush()
        self._session.refresh(row)
        return Product.model_validate(row, from_attributes=True)

    def delete(self, product_id: str) -> bool:
        """Hard delete a product together with its images and variants."""
        row = self._session.get(ProductTable, product_id)
        if row is None:
            return False
        for image in self._session.exec(
            select(ProductImageTable).where(ProductImageTable.product_id == product_id)
        ).all():
            self._session.delete(image)
        self._session.flush()
        for variant in self._session.exec(
            select(ProductVariantTable).where(
                ProductVariantTable.product_id == product_id
            )
        ).all():
            self._session.delete(variant)
        self._session.flush()
        self._session.delete(row)
        self._session.flush()
        return True

    def search(self, query: ProductQuery) -> tuple[list[Product], int]:
        """Return one page of products matching ``query`` and the total match count."""
        statement = select(ProductTable).join(
            CategoryTable, col(CategoryTable.id) == col(ProductTable.category_id)
        )
        statement = statement.where(col(ProductTable.deleted_at).is_(None))
        if query.active_only:
            statement = statement.where(ProductTable.is_active == True)  # noqa: E712

        if query.text:
            pattern = f"%{query.text.strip()}%"
            fields = [col(ProductTable.name), col(ProductTable.description)]
            if query.search_related:
                fields += [
                    col(ProductTable.brand),
                    col(ProductTable.material),
                    col(CategoryTable.name),
                ]
            statement = statement.where(or_(*(field.ilike(pattern) for field in fields)))

        if query.category_slug:
            statement = statement.where(CategoryTable.slug == query.category_slug)
        if query.category_ids is not None:
            statement = statement.where(col(ProductTable.category_id).in_(query.category_ids))
        if query.min_price is not None:
            statement = statement.where(ProductTable.price >= query.min_price)
        if query.max_price is not None:
            statement = statement.where(ProductTable.price <= query.max_price)
        if query.featured is not None:
            statement = statement.where(ProductTable.is_featured == query.featured)
        for attribute in ("brand", "material", "season", "gender"):
            value = getattr(query, attribute)
            if value:
                statement = statement.where(
                    func.lower(getattr(ProductTable, attribute)) == value.strip().lower()
                )
        if query.in_stock:
            has_variant_stock = exists().where(
                ProductVariantTable.product_id == ProductTable.id,
                ProductVariantTable.stock > 0,
            )
            statement = statement.where(or_(ProductTable.stock > 0, has_variant_stock))
        if query.on_sale:
            statement = statement.where(
                or_(
                    col(ProductTable.old_price).is_not(None),
                    ProductTable.is_on_sale == True,  # noqa: E712
                )
            )

        total = self._session.exec(
            select(func.count()).select_from(statement.subquery())
        ).one()

        order_by = {
            "price-asc": [col(ProductTable.price).asc()],
            "price-desc": [col(ProductTable.price).desc()],
            "name": [col(ProductTable.name).asc()],
            "popular": [
                col(ProductTable.is_featured).desc(),
                col(ProductTable.created_at).desc(),
            ],
            "newest": [col(ProductTable.created_at).desc()],
        }[query.sort]
        statement = statement.order_by(*order_by).offset(query.offset)
        if query.limit is not None:
            statement = statement.limit(query.limit)

        rows = self._session.exec(statement).all()
        return [Product.model_validate(row, from_attributes=True) for row in rows], total

    def list_admin(self, *, deleted: bool = False, limit: int | None = None) -> list[Product]:
        statement = select(ProductTable)
        if deleted:
            statement = statement.where(col(ProductTable.deleted_at).is_not(None)).order_by(
                col(ProductTable.deleted_at).desc()
            )
        else:
            statement = statement.where(col(ProductTable.deleted_at).is_(None)).order_by(
                col(ProductTable.created_at).desc()
            )
        if limit is not None:
            statement = statement.limit(limit)
        rows = self._session.exec(statement).all()
        return [Product.model_validate(row, from_attributes=True) for row in rows]

    def list_by_categories(self, category_ids: list[str]) -> list[Product]:
        """Active, non-deleted products of the given categories, newest first."""
        products, _ = self.search(ProductQuery(category_ids=category_ids))
        return products

    def count(self, *, include_deleted: bool = False) -> int:
        statement = select(func.count()).select_from(ProductTable)
        if not include_deleted:
            statement = statement.where(col(ProductTable.deleted_at).is_(None))
        return self._session.exec(statement).one()

    def count_by_category(self, *, visible_only: bool = False) -> dict[str, int]:
        statement = select(ProductTable.category_id, func.count()).group_by(
            ProductTable.category_id
        )
        if visible_only:
            statement = statement.where(
                ProductTable.is_active == True,  # noqa: E712
                col(ProductTable.deleted_at).is_(None),
            )
        return dict(self._session.exec(statement).all())

    def distinct_values(self, attribute: str) -> list[str]:
        column = col(getattr(ProductTable, attribute))
        statement = (
            select(column)
            .where(
                column.is_not(None),
                ProductTable.is_active == True,  # noqa: E712
                col(ProductTable.deleted_at).is_(None),
            )
            .distinct()
        )
        values = {value.strip() for value in self._session.exec(statement).all() if value and value.strip()}
        return sorted(values)

    def price_range(self) -> tuple[float | None, float | None]:
        statement = select(func.min(ProductTable.price), func.max(ProductTable.price)).where(
            ProductTable.is_active == True,  # noqa: E712
            col(ProductTable.deleted_at).is_(None),
        )
        low, high = self._session.exec(statement).one()
        return low, high

    # --- variants ---

    def list_variants(self, product_id: str) -> list[ProductVariant]:
        return self.variants_for([product_id]).get(product_id, [])

    def variants_for(self, product_ids: Iterable[str]) -> dict[str, list[ProductVariant]]:
        ids = list(set(product_ids))
        grouped: dict[str, list[ProductVariant]] = defaultdict(list)
        if not ids:
            return grouped
        rows = self._session.exec(
            select(ProductVariantTable)
            .where(col(ProductVariantTable.product_id).in_(ids))
            .order_by(col(ProductVariantTable.created_at), col(ProductVariantTable.id))
        ).all()
        for row in rows:
            grouped[row.product_id].append(
                ProductVariant.model_validate(row, from_attributes=True)
            )
        return grouped

    def add_variant(self, variant: ProductVariant) -> ProductVariant:
        row = ProductVariantTable(**variant.model_dump())
        self._session.add(row)
        self._session.flush()
        self._session.refresh(row)
        return ProductVariant.model_validate(row, from_attributes=True)

    def delete_variants(self, product_id: str) -> None:
        """Remove all variants of a product along with their images."""
        variant_ids = self._session.exec(
            select(ProductVariantTable.id).where(
                ProductVariantTable.product_id == product_id
            )
        ).all()
        if not variant_ids:
            return
        for image in self._session.exec(
            select(ProductImageTable).where(col(ProductImageTable.variant_id).in_(variant_ids))
        ).all():
            self._session.delete(image)
        self._session.flush()
        for variant in self._session.exec(
            select(ProductVariantTable).where(col(ProductVariantTable.id).in_(variant_ids))
        ).all():
            self._session.delete(variant)
        self._session.flush()

    def set_variant_stock(self, variant_id: str, stock: int) -> None:
        row = self._session.get(ProductVariantTable, variant_id)
        if row is None:
            raise ValueError(f"Variant with id {variant_id} not found")
        row.stock = stock
        row.updated_at = utcnow()
        self._session.add(row)
        self._session.flush()

    def set_product_stock(self, product_id: str, stock: int) -> None:
        row = self._session.get(ProductTable, product_id)
        if row is None:
            raise ValueError(f"Product with id {product_id} not found")
        row.stock = stock
        row.updated_at = utcnow()
        self._session.add(row)
        self._session.flush()

    def distinct_colors(self) -> list[str]:
        statement = (
            select(ProductVariantTable.color)
            .where(col(ProductVariantTable.color).is_not(None))
            .distinct()
        )
        colors = {color.strip() for color in self._session.exec(statement).all() if color and color.strip()}
        return sorted(colors)

    def low_stock_variants(self, threshold: int) -> list[tuple[Product, ProductVariant]]:
        statement = (
            select(ProductTable, ProductVariantTable)
            .join(ProductVariantTable, col(ProductVariantTable.product_id) == col(ProductTable.id))
            .where(
                ProductVariantTable.stock <= threshold,
                col(ProductTable.deleted_at).is_(None),
            )
            .order_by(col(ProductVariantTable.stock), col(ProductTable.name))
        )
        return [
            (
                Product.model_validate(product, from_attributes=True),
                ProductVariant.model_validate(variant, from_attributes=True),
            )
            for product, variant in self._session.exec(statement).all()
        ]

    # --- images ---

    def list_images(self, product_id: str) -> list[ProductImage]:
        return self.images_for([product_id]).get(product_id, [])

    def images_for(self, product_ids: Iterable[str]) -> dict[str, list[ProductImage]]:
        ids = list(set(product_ids))
        grouped: dict[str, list[ProductImage]] = defaultdict(list)
        if not ids:
            return grouped
        rows = self._session.exec(
            select(ProductImageTable)
            .where(col(ProductImageTable.product_id).in_(ids))
            .order_by(col(ProductImageTable.order), col(ProductImageTable.created_at))
        ).all()
        for row in rows:
            grouped[row.product_id].append(ProductImage.model_validate(row, from_attributes=True))
        return grouped

    def first_images(self, product_ids: Iterable[str]) -> dict[str, ProductImage]:
        return {
            product_id: images[0]
            for product_id, images in self.images_for(product_ids).items()
            if images
        }

    def add_image(self, image: ProductImage) -> ProductImage:
        row = ProductImageTable(**image.model_dump())
        self._session.add(row)
        self._session.flush()
        self._session.refresh(row)
        return ProductImage.model_validate(row, from_attributes=True)

    def delete_images(self, product_id: str) -> None:
        for image in self._session.exec(
            select(ProductImageTable).where(ProductImageTable.product_id == product_id)
        ).all():
            self._session.delete(image)
        self._session.flush()
