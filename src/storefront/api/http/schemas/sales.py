from datetime import datetime
from typing import Any

from pydantic import Field

from src.storefront.api.http.schemas.catalog import ImageOut
from src.storefront.api.http.schemas.common import ApiModel
from src.storefront.core.services.sales import (
    AmountsInput,
    CartInput,
    CartView,
    CustomerInput,
    FavoriteView,
    OrderItemInput,
    OrderView,
    ShippingInput,
)
from src.storefront.entities.sales.coupon import DiscountType
from src.storefront.entities.sales.order import OrderStatus

# --- orders ---


class OrderItemIn(ApiModel):
    product_id: str
    quantity: int = Field(gt=0)
    size: str | None = None
    color: str | None = None

    def to_input(self) -> OrderItemInput:
        return OrderItemInput(
            product_id=self.product_id, quantity=self.quantity, size=self.size, color=self.color
        )


class CustomerIn(ApiModel):
    first_name: str = Field(min_length=1)
    last_name: str = Field(min_length=1)
    email: str = Field(min_length=3)
    phone: str | None = None

    def to_input(self) -> CustomerInput:
        return CustomerInput(**self.model_dump())


class ShippingIn(ApiModel):
    address: str = Field(min_length=1)
    city: str = Field(min_length=1)
    postal_code: str = Field(min_length=1)
    country: str = "PT"
    state: str | None = None
    complement: str | None = None

    def to_input(self) -> ShippingInput:
        return ShippingInput(**self.model_dump())


class PaymentIn(ApiModel):
    method: str = Field(min_length=1)


class AmountsIn(ApiModel):
    subtotal: float = Field(ge=0)
    shipping: float = Field(default=0, ge=0)
    total: float = Field(ge=0)

    def to_input(self) -> AmountsInput:
        return AmountsInput(subtotal=self.subtotal, shipping=self.shipping, total=self.total)


class OrderCreateIn(ApiModel):
    items: list[OrderItemIn] = Field(default_factory=list)
    customer: CustomerIn
    shipping: ShippingIn
    payment: PaymentIn
    amounts: AmountsIn
    notes: str | None = None
    coupon_code: str | None = None


class OrderProductOut(ApiModel):
    id: str
    name: str
    images: list[ImageOut] = Field(default_factory=list)


class OrderItemOut(ApiModel):
    id: str
    product_id: str
    quantity: int
    price: float
    size: str | None = None
    color: str | None = None
    product: OrderProductOut | None = None


class OrderUserOut(ApiModel):
    id: str
    name: str | None = None
    email: str | None = None


class OrderOut(ApiModel):
    id: str
    user_id: str | None = None
    status: OrderStatus
    subtotal: float
    shipping_cost: float
    discount: float
    total: float
    coupon_code: str | None = None
    customer_first_name: str | None = None
    customer_last_name: str | None = None
    customer_email: str | None = None
    customer_phone: str | None = None
    shipping_address: str | None = None
    shipping_city: str | None = None
    shipping_postal_code: str | None = None
    shipping_state: str | None = None
    shipping_country: str | None = None
    shipping_complement: str | None = None
    payment_method: str | None = None
    tracking_code: str | None = None
    stripe_payment_id: str | None = None
    paypal_order_id: str | None = None
    payment_instructions: list[dict[str, Any]] | None = None
    notes: str | None = None
    created_at: datetime
    updated_at: datetime


class OrderDetailOut(OrderOut):
    items: list[OrderItemOut] = Field(default_factory=list)
    user: OrderUserOut | None = None

    @classmethod
    def build(cls, view: OrderView) -> "OrderDetailOut":
        items = []
        for line in view.lines:
            product = None
            if line.product is not None:
                product = OrderProductOut(
                    id=line.product.id,
                    name=line.product.name,
                    images=[line.image] if line.image else [],
                )
            items.append(OrderItemOut(**line.item.model_dump(), product=product))
        return cls(**view.order.model_dump(), items=items, user=view.user)


class OrderStatusIn(ApiModel):
    status: str | None = None
    tracking_code: str | None = None


# --- coupons ---


class CouponOut(ApiModel):
    id: str
    code: str
    discount_type: DiscountType
    value: float
    expires_at: datetime | None = None
    is_active: bool
    created_at: datetime
    updated_at: datetime


class CouponCreateIn(ApiModel):
    code: str
    discount_type: DiscountType = DiscountType.PERCENT
    value: float
    expires_at: datetime | None = None
    is_active: bool = True


class CouponUpdateIn(ApiModel):
    code: str | None = None
    discount_type: DiscountType | None = None
    value: float | None = None
    expires_at: datetime | None = None
    is_active: bool | None = None


class CouponValidateIn(ApiModel):
    code: str | None = None
    subtotal: float = Field(default=0, ge=0)


class CouponValidationOut(ApiModel):
    valid: bool = True
    code: str
    discount_type: DiscountType
    value: float
    discount: float


# --- favorites ---


class FavoriteProductRef(ApiModel):
    id: str


class FavoriteIn(ApiModel):
    product: FavoriteProductRef | None = None
    product_id: str | None = None

    @property
    def target_id(self) -> str | None:
        return self.product.id if self.product else self.product_id


class FavoriteSyncIn(ApiModel):
    product_ids: list[str] = Field(default_factory=list)


class FavoriteOut(ApiModel):
    id: str
    name: str
    price: float
    old_price: float | None = None
    sale_price: float | None = None
    is_on_sale: bool = False
    images: list[ImageOut] = Field(default_factory=list)
    stock: int
    category: str | None = None
    added_at: datetime

    @classmethod
    def build(cls, view: FavoriteView) -> "FavoriteOut":
        card = view.card
        return cls(
            id=card.product.id,
            name=card.product.name,
            price=card.product.price,
            old_price=card.product.old_price,
            sale_price=card.product.sale_price,
            is_on_sale=card.product.is_on_sale,
            images=card.images,
            stock=card.stock,
            category=card.category.name if card.category else None,
            added_at=view.favorite.created_at,
        )


# --- cart ---


class CartItemIn(ApiModel):
    product_id: str
    quantity: int = 1
    size: str | None = None
    color: str | None = None

    def to_input(self) -> CartInput:
        return CartInput(
            product_id=self.product_id, quantity=self.quantity, size=self.size, color=self.color
        )


class CartSyncIn(ApiModel):
    items: list[CartItemIn] = Field(default_factory=list)


class CartLineOut(ApiModel):
    product_id: str
    name: str
    price: float
    quantity: int
    size: str | None = None
    color: str | None = None
    image: str | None = None
    line_total: float


class CartOut(ApiModel):
    items: list[CartLineOut] = Field(default_factory=list)
    total_items: int = 0
    total_price: float = 0.0

    @classmethod
    def build(cls, view: CartView) -> "CartOut":
        return cls(
            items=[
                CartLineOut(
                    product_id=line.product.id,
                    name=line.product.name,
                    price=line.product.effective_price,
                    quantity=line.item.quantity,
                    size=line.item.size,
                    color=line.item.color,
                    image=line.image.url if line.image else None,
                    line_total=line.line_total,
                )
                for line in view.lines
            ],
            total_items=view.total_items,
            total_price=view.total_price,
        )


# --- payments ---


class CheckoutIn(ApiModel):
    order_id: str
    customer_email: str | None = None


class PayPalCaptureIn(ApiModel):
    order_id: str
    token: str | None = None


class MultibancoIn(ApiModel):
    order_id: str
    full_name: str | None = None
