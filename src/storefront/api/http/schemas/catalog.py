from datetime import datetime

from pydantic import Field

from src.storefront.api.http.schemas.common import ApiModel
from src.storefront.core.services.catalog import (
    CategoryNode,
    ImageInput,
    ProductCard,
    ProductDetail,
    VariantInput,
)
from src.storefront.entities.catalog.category import Category
from src.storefront.entities.catalog.product import Product

# --- categories ---


class CategoryRef(ApiModel):
    id: str
    name: str
    slug: str


class CategoryOut(ApiModel):
    id: str
    name: str
    slug: str
    description: str | None = None
    image: str | None = None
    is_active: bool
    order: int
    parent_id: str | None = None
    created_at: datetime
    updated_at: datetime


class CategoryWithCount(CategoryOut):
    product_count: int = 0

    @classmethod
    def build(cls, category: Category, count: int) -> "CategoryWithCount":
        return cls(**category.model_dump(), product_count=count)


class CategoryIn(ApiModel):
    name: str | None = None
    description: str | None = None
    image: str | None = None
    is_active: bool = True
    parent_id: str | None = None


class CategoryUpdateIn(CategoryIn):
    subcategories: list[str] | None = None


class CategoryOrderIn(ApiModel):
    id: str
    order: int


class ReorderIn(ApiModel):
    category_orders: list[CategoryOrderIn] = Field(default_factory=list)


class CategoryNodeOut(CategoryOut):
    level: int
    parent: CategoryRef | None = None
    grandparent: CategoryRef | None = None
    children: list[CategoryRef] = Field(default_factory=list)
    product_count: int = 0

    @classmethod
    def build(cls, node: CategoryNode) -> "CategoryNodeOut":
        return cls(
            **node.category.model_dump(),
            level=node.level,
            parent=node.parent,
            grandparent=node.grandparent,
            children=node.children,
            product_count=node.product_count,
        )


# --- products ---


class ImageOut(ApiModel):
    id: str
    url: str
    public_id: str | None = None
    order: int = 0
    variant_id: str | None = None


class VariantOut(ApiModel):
    id: str
    size: str | None = None
    color: str | None = None
    stock: int
    images: list[ImageOut] = Field(default_factory=list)


class ProductOut(ApiModel):
    id: str
    name: str
    description: str | None = None
    price: float
    old_price: float | None = None
    sale_price: float | None = None
    is_on_sale: bool
    sale_percentage: int | None = None
    stock: int
    category_id: str
    is_featured: bool
    is_active: bool
    material: str | None = None
    brand: str | None = None
    season: str | None = None
    gender: str | None = None
    deleted_at: datetime | None = None
    created_at: datetime
    updated_at: datetime


class ProductCardOut(ProductOut):
    images: list[ImageOut] = Field(default_factory=list)
    category: CategoryRef | None = None
    order_items_count: int = 0

    @classmethod
    def build(cls, card: ProductCard) -> "ProductCardOut":
        images = card.images or ([card.image] if card.image else [])
        return cls(
            **card.product.model_dump(exclude={"stock"}),
            stock=card.stock,
            images=images,
            category=card.category,
            order_items_count=card.order_item_count,
        )


class ProductDetailOut(ProductOut):
    images: list[ImageOut] = Field(default_factory=list)
    variants: list[VariantOut] = Field(default_factory=list)
    category: CategoryRef | None = None

    @classmethod
    def build(cls, detail: ProductDetail) -> "ProductDetailOut":
        return cls(
            **detail.product.model_dump(exclude={"stock"}),
            stock=detail.stock,
            images=detail.images,
            variants=[
                VariantOut(**v.variant.model_dump(), images=v.images) for v in detail.variants
            ],
            category=detail.category,
        )


class ImageIn(ApiModel):
    url: str
    public_id: str | None = None
    order: int = 0

    def to_input(self) -> ImageInput:
        return ImageInput(url=self.url, public_id=self.public_id, order=self.order)


class VariantIn(ApiModel):
    size: str | None = None
    color: str | None = None
    stock: int | None = 0
    images: list[ImageIn] = Field(default_factory=list)

    def to_input(self) -> VariantInput:
        return VariantInput(
            size=self.size,
            color=self.color,
            stock=self.stock,
            images=[image.to_input() for image in self.images],
        )


class ProductFields(ApiModel):
    name: str | None = None
    description: str | None = None
    price: float | None = Field(default=None, ge=0)
    old_price: float | None = None
    is_on_sale: bool | None = None
    sale_percentage: int | None = Field(default=None, ge=0, le=100)
    stock: int | None = Field(default=None, ge=0)
    category_id: str | None = None
    is_featured: bool | None = None
    is_active: bool | None = None
    material: str | None = None
    brand: str | None = None
    season: str | None = None
    gender: str | None = None


class ProductCreateIn(ProductFields):
    name: str
    price: float = Field(ge=0)
    category_id: str
    images: list[ImageIn] = Field(default_factory=list)
    variants: list[VariantIn] = Field(default_factory=list)

    def fields(self) -> dict:
        return self.model_dump(exclude={"images", "variants"}, exclude_none=True)


class ProductUpdateIn(ProductFields):
    images: list[ImageIn] | None = None
    variants: list[VariantIn] | None = None

    def changes(self) -> dict:
        """Only the fields the client actually sent."""
        return self.model_dump(exclude={"images", "variants"}, exclude_unset=True)


class DeletedProductOut(ApiModel):
    message: str
    soft_deleted: bool
    product: ProductOut

    @classmethod
    def build(cls, product: Product, soft: bool) -> "DeletedProductOut":
        message = "Product deactivated" if soft else "Product deleted"
        return cls(message=message, soft_deleted=soft, product=product)


# --- attributes ---


class NamedOut(ApiModel):
    id: str
    name: str


class SizeOut(NamedOut):
    order: int


class NameIn(ApiModel):
    name: str | None = None
