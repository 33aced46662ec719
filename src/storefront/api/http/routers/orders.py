"""Checkout order placement, order history and admin order management."""

from typing import Any

from fastapi import APIRouter, Depends
from sqlmodel import Session

from src.storefront.api.http.deps import (
    get_current_user,
    get_db_session,
    get_order_service,
    get_revalidation_service,
    require_admin,
)
from src.storefront.api.http.schemas.sales import (
    OrderCreateIn,
    OrderDetailOut,
    OrderOut,
    OrderStatusIn,
)
from src.storefront.core.services import RevalidationService
from src.storefront.core.services.sales import OrderService
from src.storefront.entities.core.user import User

router = APIRouter(prefix="/api", tags=["orders"])


@router.post("/orders", status_code=201)
def create_order(
    body: OrderCreateIn,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db_session),
    orders: OrderService = Depends(get_order_service),
) -> dict[str, str]:
    order = orders.create(
        user,
        items=[item.to_input() for item in body.items],
        customer=body.customer.to_input(),
        shipping=body.shipping.to_input(),
        payment_method=body.payment.method,
        amounts=body.amounts.to_input(),
        notes=body.notes,
        coupon_code=body.coupon_code,
    )
    db.commit()
    return {"id": order.id}


@router.get("/orders", response_model=list[OrderDetailOut])
def my_orders(
    user: User = Depends(get_current_user),
    orders: OrderService = Depends(get_order_service),
) -> list[OrderDetailOut]:
    return [OrderDetailOut.build(view) for view in orders.list_for_user(user)]


@router.get("/orders/{order_id}", response_model=OrderDetailOut)
def get_order(
    order_id: str,
    user: User = Depends(get_current_user),
    orders: OrderService = Depends(get_order_service),
) -> OrderDetailOut:
    return OrderDetailOut.build(orders.get_for(user, order_id))


@router.get("/admin/orders", response_model=list[OrderDetailOut])
def all_orders(
    status: str | None = None,
    _: User = Depends(require_admin),
    orders: OrderService = Depends(get_order_service),
) -> list[OrderDetailOut]:
    return [
        OrderDetailOut.build(view)
        for view in orders.list_all(status=status.upper() if status else None)
    ]


@router.patch("/admin/orders/{order_id}")
async def update_order_status(
    order_id: str,
    body: OrderStatusIn,
    _: User = Depends(require_admin),
    db: Session = Depends(get_db_session),
    orders: OrderService = Depends(get_order_service),
    revalidation: RevalidationService = Depends(get_revalidation_service),
) -> dict[str, Any]:
    """Set an order's status and tracking code; any known status is accepted."""
    order = orders.update_status(order_id, body.status, body.tracking_code)
    db.commit()
    await revalidation.revalidate(["/admin/orders", f"/orders/{order_id}", "/orders"])
    return {"success": True, "order": OrderOut.model_validate(order)}


@router.get("/admin/dashboard")
def dashboard(
    _: User = Depends(require_admin),
    orders: OrderService = Depends(get_order_service),
) -> dict[str, Any]:
    stats = orders.dashboard()
    return {
        "totalProducts": stats["total_products"],
        "totalOrders": stats["total_orders"],
        "totalUsers": stats["total_users"],
        "recentOrders": [OrderDetailOut.build(view) for view in stats["recent_orders"]],
        "revenue": stats["revenue"],
        "revenueByPaymentMethod": stats["revenue_by_payment_method"],
    }
