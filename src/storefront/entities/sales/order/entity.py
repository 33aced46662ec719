"""Entities: Order and OrderItem."""

from enum import StrEnum
from typing import Any

from pydantic import Field

from src.storefront.entities.core._base import Entity


class OrderStatus(StrEnum):
    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    PAID = "PAID"
    SHIPPED = "SHIPPED"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"


# Orders in these states can still be marked paid by a payment callback
PAYABLE_STATUSES = frozenset({OrderStatus.PENDING, OrderStatus.PROCESSING})

# Orders in these states count towards revenue
SETTLED_STATUSES = frozenset(
    {OrderStatus.PAID, OrderStatus.SHIPPED, OrderStatus.DELIVERED}
)


class OrderItem(Entity):
    order_id: str
    product_id: str
    quantity: int = Field(gt=0)
    price: float = Field(ge=0, description="Unit price charged")
    size: str | None = None
    color: str | None = None

    @property
    def line_total(self) -> float:
        return round(self.price * self.quantity, 2)


class Order(Entity):
    """A customer's order with a snapshot of contact and shipping details.

    Amounts are stored as charged; ``total`` is ``subtotal + shipping_cost - discount``.
    ``user_id`` becomes null when the owning account is deleted.
    """

    user_id: str | None = None
    status: OrderStatus = OrderStatus.PENDING
    subtotal: float = 0
    shipping_cost: float = 0
    discount: float = 0
    total: float = 0
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

    @property
    def customer_name(self) -> str:
        parts = [self.customer_first_name, self.customer_last_name]
        return " ".join(part for part in parts if part).strip()
