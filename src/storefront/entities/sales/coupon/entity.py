"""Entity: Coupon."""

from datetime import datetime
from enum import StrEnum

from pydantic import Field, field_validator

from src.storefront.entities.core._base import Entity, ensure_utc, utcnow


class DiscountType(StrEnum):
    PERCENT = "PERCENT"
    FIXED = "FIXED"


class Coupon(Entity):
    code: str = Field(min_length=1)
    discount_type: DiscountType = DiscountType.PERCENT
    value: float = Field(gt=0)
    expires_at: datetime | None = None
    is_active: bool = True

    @field_validator("code")
    @classmethod
    def _normalize_code(cls, value: str) -> str:
        return value.strip().upper()

    def is_expired(self, now: datetime | None = None) -> bool:
        if self.expires_at is None:
            return False
        return ensure_utc(self.expires_at) < (now or utcnow())

    def is_usable(self, now: datetime | None = None) -> bool:
        return self.is_active and not self.is_expired(now)

    def discount_for(self, subtotal: float) -> float:
        """Discount granted on ``subtotal``, never more than the subtotal itself."""
        if subtotal <= 0:
            return 0.0
        if self.discount_type == DiscountType.PERCENT:
            amount = subtotal * self.value / 100
        else:
            amount = self.value
        return round(min(amount, subtotal), 2)
