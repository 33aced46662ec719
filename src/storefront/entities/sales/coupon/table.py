"""Coupon database table model."""

from datetime import datetime

from sqlmodel import Field

from src.storefront.entities.core._base import EntityTable, Money


class CouponTable(EntityTable, table=True):
    code: str = Field(unique=True, index=True)
    discount_type: str = Field(default="PERCENT")
    value: float = Field(sa_type=Money)
    expires_at: datetime | None = None
    is_active: bool = Field(default=True)
