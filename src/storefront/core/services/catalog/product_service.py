from dataclasses import dataclass, field
from math import ceil
from typing import Any

from loguru import logger
from sqlmodel import Session

from src.storefront.core.errors import (
    ConflictError,
    NotFoundError,
    ProviderError,
    ValidationFailed,
)
from src.storefront.core.services.media.cloudinary_service import CloudinaryService
from src.storefront.entities.catalog.category import Category, CategoryRepository
from src.storefront.entities.catalog.product import (
    Product,
    ProductImage,
    ProductQuery,
    ProductRepository,
    ProductVariant,
    sale_price_for,
    total_stock,
)
from src.storefront.entities.core._base import utcnow
from src.storefront.entities.sales.cart.repository import CartRepository
from src.storefront.entities.sales.favorite.repository import FavoriteRepository
from src.storefront.entities.sales.order.entity import OrderStatus
from src.storefront.entities.sales.order.repository import OrderRepository

DEFAULT_PRICE_RANGE = (0.0, 1000.0)


@dataclass
class ImageInput:
    url: str
    public_id: str | None = None
    order: int = 0


@dataclass
class VariantInput:
    size: str | None = None
    color: str | None = None
    stock: int = 0
    images: list[ImageInput] = field(default_factory=list)


@dataclass
class ProductCard:
    """A product as shown in listings: first image and summed stock."""

    product: Product
    image: ProductImage | None
    stock: int
    images: list[ProductImage] = field(default_factory=list)
    category: Category | None = None
    order_item_count: int = 0


@dataclass
class VariantDetail:
    variant: ProductVariant
    images: list[ProductImage]


@dataclass
class ProductDetail:
    product: Product
    category: Category | None
    images: list[ProductImage]
    variants: list[VariantDetail]
    stock: int


@dataclass
class Page:
    items: list[ProductCard]
    page: int
    limit: int
    total: int

    @property
    def pages(self) -> int:
        return ceil(self.total / self.limit) if self.limit else 0


@dataclass
class DeleteOutcome:
    product: Product
    soft: bool


class ProductService:
    """Catalog reads for the storefront and product management for admins."""

    def __init__(self, session: Session, media: CloudinaryService | None = None) -> None:
        self._session = session
        self._media = media
        self._products = ProductRepository(session)
        self._categories = CategoryRepository(session)
        self._orders = OrderRepository(session)

    # --- listings ---

    def build_cards(
        self, products: list[Product], *, with_images: bool = False
    ) -> list[ProductCard]:
        ids = [product.id for product in products]
        images = self._products.images_for(ids)
        variants = self._products.variants_for(ids)
        categories = {c.id: c for c in self._categories.list_all()}
        cards = []
        for product in products:
            product_images = images.get(product.id, [])
            cards.append(
                ProductCard(
                    product=product,
                    image=product_images[0] if product_images else None,
                    stock=total_stock(product, variants.get(product.id, [])),
                    images=product_images if with_images else [],
                    category=categories.get(product.category_id),
                )
            )
        return cards

    def list_page(self, query: ProductQuery, *, page: int, limit: int) -> Page:
        page = max(page, 1)
        query.offset = (page - 1) * limit
        query.limit = limit
        products, total = self._products.search(query)
        return Page(items=self.build_cards(products), page=page, limit=limit, total=total)

    def filters(self) -> dict[str, Any]:
        counts = self._products.count_by_category(visible_only=True)
        categories = sorted(
            self._categories.list_all(active_only=True), key=lambda c: c.name.lower()
        )
        low, high = self._products.price_range()
        return {
            "categories": [
                {
                    "id": c.id,
                    "name": c.name,
                    "slug": c.slug,
                    "count": counts.get(c.id, 0),
                }
                for c in categories
            ],
            "brands": self._products.distinct_values("brand"),
            "materials": self._products.distinct_values("material"),
            "seasons": self._products.distinct_values("season"),
            "colors": self._products.distinct_colors(),
            "priceRange": {
                "min": low or DEFAULT_PRICE_RANGE[0],
                "max": high or DEFAULT_PRICE_RANGE[1],
            },
        }

    def colors(self) -> list[str]:
        return self._products.distinct_colors()

    # --- single product ---

    def get_detail(self, product_id: str) -> ProductDetail:
        product = self._products.get(product_id)
        if product is None:
            raise NotFoundError("Product not found")

        images = self._products.list_images(product_id)
        variants = self._products.list_variants(product_id)
        return ProductDetail(
            product=product,
            category=self._categories.get(product.category_id),
            images=[image for image in images if image.variant_id is None],
            variants=[
                VariantDetail(
                    variant=variant,
                    images=[image for image in images if image.variant_id == variant.id],
                )
                for variant in variants
            ],
            stock=total_stock(product, variants),
        )

    def create(
        self,
        fields: dict[str, Any],
        *,
        images: list[ImageInput] | None = None,
        variants: list[VariantInput] | None = None,
    ) -> Product:
        if self._categories.get(fields.get("category_id", "")) is None:
            raise ValidationFailed("Category not found")
        if variants:
            self._validate_variants(variants)

        product = Product(**fields)
        product = self._apply_sale(product)
        product = self._products.create(product)

        for image in images or []:
            self._add_image(product.id, image)
        for variant in variants or []:
            self._add_variant(product.id, variant)

        logger.info("Created product {} ({})", product.id, product.name)
        return product

    def update(
        self,
        product_id: str,
        changes: dict[str, Any],
        *,
        images: list[ImageInput] | None = None,
        variants: list[VariantInput] | None = None,
    ) -> Product:
        """Partially update a product.

        ``variants`` replaces every variant (and its images); ``images`` replaces
        the product images only when no variants are supplied.
        """
        product = self._products.get(product_id)
        if product is None:
            raise NotFoundError("Product not found")

        if "category_id" in changes and self._categories.get(changes["category_id"]) is None:
            raise ValidationFailed("Category not found")
        if variants is not None:
            if not variants:
                raise ValidationFailed("At least one variant is required")
            self._validate_variants(variants)

        product = Product.model_validate({**product.model_dump(), **changes})
        product = self._products.update(self._apply_sale(product))

        if variants is not None:
            self._products.delete_variants(product_id)
            for variant in variants:
                self._add_variant(product_id, variant)
        elif images is not None:
            self._products.delete_images(product_id)
            for image in images:
                self._add_image(product_id, image)

        logger.info("Updated product {}", product_id)
        return product

    @staticmethod
    def _apply_sale(product: Product) -> Product:
        if product.is_on_sale and product.sale_percentage:
            product.sale_price = sale_price_for(product.price, product.sale_percentage)
        else:
            product.is_on_sale = False
            product.sale_percentage = None
            product.sale_price = None
        return product

    @staticmethod
    def _validate_variants(variants: list[VariantInput]) -> None:
        for variant in variants:
            if not (variant.size or "").strip() and not (variant.color or "").strip():
                raise ValidationFailed("Each variant must have at least a size or a color")
            if variant.stock is None or variant.stock < 0:
                raise ValidationFailed("Variant stock must be a non-negative number")

    def _add_image(
        self, product_id: str, image: ImageInput, variant_id: str | None = None
    ) -> None:
        self._products.add_image(
            ProductImage(
                product_id=product_id,
                variant_id=variant_id,
                url=image.url,
                public_id=image.public_id,
                order=image.order,
            )
        )

    def _add_variant(self, product_id: str, variant: VariantInput) -> None:
        created = self._products.add_variant(
            ProductVariant(
                product_id=product_id,
                size=(variant.size or "").strip() or None,
                color=(variant.color or "").strip() or None,
                stock=variant.stock,
            )
        )
        for image in variant.images:
            self._add_image(product_id, image, variant_id=created.id)

    def delete(self, product_id: str, *, force: bool = False) -> DeleteOutcome:
        """Hard delete a product, or soft delete it when orders reference it.

        Products that appear in undelivered orders cannot be deleted at all.
        """
        product = self._products.get(product_id)
        if product is None:
            raise NotFoundError("Product not found")

        statuses = self._orders.item_statuses_for_product(product_id)
        if statuses:
            if force and product.is_deleted:
                raise ConflictError(
                    "Products with order history cannot be permanently deleted",
                    totalOrders=len(statuses),
                )
            pending = [s for s in statuses if s != OrderStatus.DELIVERED.value]
            if pending:
                raise ConflictError(
                    "Cannot delete a product with pending orders",
                    totalOrders=len(statuses),
                    pendingOrders=len(pending),
                )

            product.deleted_at = utcnow()
            product.is_active = False
            product = self._products.update(product)
            logger.info("Soft deleted product {}", product_id)
            return DeleteOutcome(product=product, soft=True)

        self._destroy_images(product_id)
        FavoriteRepository(self._session).delete_for_product(product_id)
        CartRepository(self._session).delete_for_product(product_id)
        self._products.delete(product_id)
        logger.info("Deleted product {}", product_id)
        return DeleteOutcome(product=product, soft=False)

    def _destroy_images(self, product_id: str) -> None:
        if self._media is None:
            return
        for image in self._products.list_images(product_id):
            if not image.public_id:
                continue
            try:
                self._media.destroy(image.public_id)
            except ProviderError:
                logger.exception(
                    "Failed to delete image {} of product {}", image.id, product_id
                )

    # --- admin ---

    def admin_list(self, *, deleted: bool = False, limit: int | None = None) -> list[ProductCard]:
        products = self._products.list_admin(deleted=deleted, limit=limit)
        cards = self.build_cards(products)
        counts = self._orders.count_items_by_product([p.id for p in products])
        for card in cards:
            card.order_item_count = counts.get(card.product.id, 0)
        return cards

    def restore(self, product_id: str) -> Product:
        product = self._products.get(product_id)
        if product is None:
            raise NotFoundError("Product not found")
        product.is_active = True
        product.deleted_at = None
        product = self._products.update(product)
        logger.info("Restored product {}", product_id)
        return product
