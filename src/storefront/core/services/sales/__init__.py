from .cart_service import CartInput, CartLine, CartService, CartView
from .coupon_service import CouponService
from .favorite_service import FavoriteService, FavoriteView
from .order_service import (
    AmountsInput,
    CustomerInput,
    OrderItemInput,
    OrderLine,
    OrderService,
    OrderView,
    ShippingInput,
)

__all__ = [
    "AmountsInput",
    "CartInput",
    "CartLine",
    "CartService",
    "CartView",
    "CouponService",
    "CustomerInput",
    "FavoriteService",
    "FavoriteView",
    "OrderItemInput",
    "OrderLine",
    "OrderService",
    "OrderView",
    "ShippingInput",
]
