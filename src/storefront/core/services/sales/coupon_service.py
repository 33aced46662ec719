from datetime import datetime
from typing import Any

from loguru import logger
from sqlmodel import Session

from src.storefront.core.errors import ConflictError, NotFoundError, ValidationFailed
from src.storefront.entities.sales.coupon import Coupon, CouponRepository, DiscountType


class CouponService:
    """Admin coupon management and checkout-time coupon validation."""

    def __init__(self, session: Session) -> None:
        self._coupons = CouponRepository(session)

    def list_all(self) -> list[Coupon]:
        return self._coupons.list_all()

    def create(
        self,
        *,
        code: str,
        discount_type: DiscountType,
        value: float,
        expires_at: datetime | None = None,
        is_active: bool = True,
    ) -> Coupon:
        code = (code or "").strip().upper()
        if not code:
            raise ValidationFailed("Code is required")
        self._check_value(discount_type, value)
        if self._coupons.get_by_code(code):
            raise ConflictError("A coupon with this code already exists")

        coupon = self._coupons.create(
            Coupon(
                code=code,
                discount_type=discount_type,
                value=value,
                expires_at=expires_at,
                is_active=is_active,
            )
        )
        logger.info("Created coupon {}", coupon.code)
        return coupon

    def update(self, coupon_id: str, changes: dict[str, Any]) -> Coupon:
        coupon = self._coupons.get(coupon_id)
        if coupon is None:
            raise NotFoundError("Coupon not found")

        if "code" in changes and changes["code"] is not None:
            code = changes["code"].strip().upper()
            existing = self._coupons.get_by_code(code)
            if existing and existing.id != coupon_id:
                raise ConflictError("A coupon with this code already exists")
            changes["code"] = code

        changes.pop("id", None)
        self._check_value(
            changes.get("discount_type", coupon.discount_type),
            changes.get("value", coupon.value),
        )
        updated = Coupon.model_validate({**coupon.model_dump(), **changes})
        return self._coupons.update(updated)

    def delete(self, coupon_id: str) -> None:
        if not self._coupons.delete(coupon_id):
            raise NotFoundError("Coupon not found")
        logger.info("Deleted coupon {}", coupon_id)

    def get_usable(self, code: str | None) -> Coupon:
        coupon = self._coupons.get_by_code(code) if code and code.strip() else None
        if coupon is None or not coupon.is_active:
            raise ValidationFailed("Invalid coupon")
        if coupon.is_expired():
            raise ValidationFailed("Coupon has expired")
        return coupon

    def validate(self, code: str | None, subtotal: float) -> tuple[Coupon, float]:
        """Resolve a shopper-entered code and the discount it gives on ``subtotal``."""
        coupon = self.get_usable(code)
        return coupon, coupon.discount_for(subtotal)

    @staticmethod
    def _check_value(discount_type: DiscountType, value: float | None) -> None:
        if value is None or value <= 0:
            raise ValidationFailed("Value must be greater than zero")
        if discount_type == DiscountType.PERCENT and value > 100:
            raise ValidationFailed("Percentage must be between 0 and 100")
