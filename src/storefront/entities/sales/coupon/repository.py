from sqlmodel import Session, col, select

from src.storefront.entities.core._base import utcnow
from src.storefront.entities.sales.coupon.entity import Coupon
from src.storefront.entities.sales.coupon.table import CouponTable


class CouponRepository:
    """Data-access layer for coupons."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def get(self, coupon_id: str) -> Coupon | None:
        row = self._session.get(CouponTable, coupon_id)
        if row is None:
            return None
        return Coupon.model_validate(row, from_attributes=True)

    def get_by_code(self, code: str) -> Coupon | None:
        statement = select(CouponTable).where(CouponTable.code == code.strip().upper())
        row = self._session.exec(statement).first()
        if row is None:
            return None
        return Coupon.model_validate(row, from_attributes=True)

    def list_all(self) -> list[Coupon]:
        statement = select(CouponTable).order_by(col(CouponTable.created_at).desc())
        rows = self._session.exec(statement).all()
        return [Coupon.model_validate(row, from_attributes=True) for row in rows]

    def create(self, coupon: Coupon) -> Coupon:
        row = CouponTable(**coupon.model_dump())
        self._session.add(row)
        self._session.flush()
        self._session.refresh(row)
        return Coupon.model_validate(row, from_attributes=True)

    def update(self, coupon: Coupon) -> Coupon:
        row = self._session.get(CouponTable, coupon.id)
        if row is None:
            raise ValueError(f"Coupon with id {coupon.id} not found")

        for field, value in coupon.model_dump(exclude={"id", "created_at"}).items():
            setattr(row, field, value)
        row.updated_at = utcnow()

        self._session.add(row)
        self._session.flush()
        self._session.refresh(row)
        return Coupon.model_validate(row, from_attributes=True)

    def delete(self, coupon_id: str) -> bool:
        row = self._session.get(CouponTable, coupon_id)
        if row is None:
            return False
        self._session.delete(row)
        self._session.flush()
        return True
