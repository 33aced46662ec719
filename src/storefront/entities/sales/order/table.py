"""Order and order item database table models."""

from typing import Any

from sqlalchemy import JSON
from sqlmodel import Field

from src.storefront.entities.core._base import EntityTable, Money


class OrderTable(EntityTable, table=True):
    """Database persistence model for orders."""

    user_id: str | None = Field(default=None, foreign_key="usertable.id", index=True)
    status: str = Field(default="PENDING", index=True)
    subtotal: float = Field(default=0, sa_type=Money)
    shipping_cost: float = Field(default=0, sa_type=Money)
    discount: float = Field(default=0, sa_type=Money)
    total: float = Field(default=0, sa_type=Money)
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
    paypal_order_id: str | None = Field(default=None, index=True)
    payment_instructions: list[dict[str, Any]] | None = Field(default=None, sa_type=JSON)
    notes: str | None = None


class OrderItemTable(EntityTable, table=True):
    order_id: str = Field(foreign_key="ordertable.id", index=True)
    product_id: str = Field(foreign_key="producttable.id", index=True)
    quantity: int
    price: float = Field(sa_type=Money)
    size: str | None = None
    color: str | None = None
