"""Entity package: Coupon."""

from .entity import Coupon, DiscountType
from .repository import CouponRepository
from .table import CouponTable

__all__ = ["Coupon", "DiscountType", "CouponRepository", "CouponTable"]
