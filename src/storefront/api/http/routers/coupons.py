"""Coupon administration and checkout-time coupon validation."""

from typing import Any

from fastapi import APIRouter, Depends
from sqlmodel import Session

from src.storefront.api.http.deps import get_coupon_service, get_db_session, require_admin
from src.storefront.api.http.schemas.sales import (
    CouponCreateIn,
    CouponOut,
    CouponUpdateIn,
    CouponValidateIn,
    CouponValidationOut,
)
from src.storefront.core.services.sales import CouponService
from src.storefront.entities.core.user import User

router = APIRouter(prefix="/api", tags=["coupons"])


@router.get("/admin/coupons", response_model=list[CouponOut])
def list_coupons(
    _: User = Depends(require_admin),
    coupons: CouponService = Depends(get_coupon_service),
) -> list[CouponOut]:
    return [CouponOut.model_validate(coupon) for coupon in coupons.list_all()]


@router.post("/admin/coupons", status_code=201, response_model=CouponOut)
def create_coupon(
    body: CouponCreateIn,
    _: User = Depends(require_admin),
    db: Session = Depends(get_db_session),
    coupons: CouponService = Depends(get_coupon_service),
) -> CouponOut:
    coupon = coupons.create(**body.model_dump())
    db.commit()
    return CouponOut.model_validate(coupon)


@router.put("/admin/coupons/{coupon_id}", response_model=CouponOut)
def update_coupon(
    coupon_id: str,
    body: CouponUpdateIn,
    _: User = Depends(require_admin),
    db: Session = Depends(get_db_session),
    coupons: CouponService = Depends(get_coupon_service),
) -> CouponOut:
    coupon = coupons.update(coupon_id, body.model_dump(exclude_unset=True))
    db.commit()
    return CouponOut.model_validate(coupon)


@router.delete("/admin/coupons/{coupon_id}")
def delete_coupon(
    coupon_id: str,
    _: User = Depends(require_admin),
    db: Session = Depends(get_db_session),
    coupons: CouponService = Depends(get_coupon_service),
) -> dict[str, Any]:
    coupons.delete(coupon_id)
    db.commit()
    return {"success": True}


@router.post("/coupons/validate", response_model=CouponValidationOut)
def validate_coupon(
    body: CouponValidateIn,
    coupons: CouponService = Depends(get_coupon_service),
) -> CouponValidationOut:
    coupon, discount = coupons.validate(body.code, body.subtotal)
    return CouponValidationOut(
        code=coupon.code,
        discount_type=coupon.discount_type,
        value=coupon.value,
        discount=discount,
    )
