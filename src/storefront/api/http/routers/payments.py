"""Stripe and PayPal checkout, capture and webhook endpoints."""

import json
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request
from loguru import logger
from sqlmodel import Session

from src.storefront.api.http.deps import (
    get_current_user,
    get_db_session,
    get_order_service,
    get_paypal_service,
    get_stripe_service,
)
from src.storefront.api.http.schemas.sales import CheckoutIn, MultibancoIn, PayPalCaptureIn
from src.storefront.core.services import PayPalService, StripeService
from src.storefront.core.services.payments import apply_paypal_event
from src.storefront.core.services.sales import OrderService
from src.storefront.entities.catalog.product import ProductRepository
from src.storefront.entities.core.user import User
from src.storefront.entities.sales.order import SETTLED_STATUSES

router = APIRouter(prefix="/api", tags=["payments"])


# --- stripe ---


@router.post("/stripe/checkout")
def stripe_checkout(
    body: CheckoutIn,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db_session),
    orders: OrderService = Depends(get_order_service),
    stripe_service: StripeService = Depends(get_stripe_service),
) -> dict[str, str]:
    order, items = orders.get_pending_owned(user, body.order_id)
    products = ProductRepository(db).get_many(item.product_id for item in items)
    return stripe_service.create_checkout_session(
        order, items, products, customer_email=body.customer_email
    )


@router.post("/stripe/webhook")
async def stripe_webhook(
    request: Request,
    db: Session = Depends(get_db_session),
    orders: OrderService = Depends(get_order_service),
    stripe_service: StripeService = Depends(get_stripe_service),
) -> dict[str, bool]:
    payload = await request.body()
    event = stripe_service.construct_event(payload, request.headers.get("stripe-signature"))
    stripe_service.handle_event(event, orders)
    db.commit()
    return {"received": True}


# --- paypal ---


@router.post("/paypal/checkout")
async def paypal_checkout(
    body: CheckoutIn,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db_session),
    orders: OrderService = Depends(get_order_service),
    paypal: PayPalService = Depends(get_paypal_service),
) -> dict[str, Any]:
    order, items = orders.get_pending_owned(user, body.order_id)
    products = ProductRepository(db).get_many(item.product_id for item in items)
    created = await paypal.create_order(order, items, products)
    orders.set_paypal_order_id(order.id, created["id"])
    db.commit()
    return created


@router.post("/paypal/capture")
async def paypal_capture(
    body: PayPalCaptureIn,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db_session),
    orders: OrderService = Depends(get_order_service),
    paypal: PayPalService = Depends(get_paypal_service),
) -> dict[str, Any]:
    """Capture an approved PayPal order after the buyer returns from PayPal."""
    order, _ = orders.get_owned(user, body.order_id)
    if order.status in SETTLED_STATUSES:
        return {"ok": True, "alreadyPaid": True}

    paypal_order_id = body.token or order.paypal_order_id
    if not paypal_order_id:
        raise HTTPException(status_code=400, detail="Missing PayPal order token")

    captured = await paypal.capture(order, paypal_order_id)
    orders.mark_paid(order.id, "paypal")
    db.commit()
    return {"ok": True, "status": captured.get("status")}


@router.post("/paypal/multibanco")
async def paypal_multibanco(
    body: MultibancoIn,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db_session),
    orders: OrderService = Depends(get_order_service),
    paypal: PayPalService = Depends(get_paypal_service),
) -> dict[str, Any]:
    if not body.full_name or not body.full_name.strip():
        raise HTTPException(status_code=400, detail="Full name is required for Multibanco")

    order, _ = orders.get_pending_owned(user, body.order_id)
    started = await paypal.create_multibanco(order, body.full_name.strip())
    orders.set_paypal_order_id(order.id, started["orderId"])
    db.commit()
    return started


@router.post("/paypal/webhook")
async def paypal_webhook(
    request: Request,
    db: Session = Depends(get_db_session),
    orders: OrderService = Depends(get_order_service),
    paypal: PayPalService = Depends(get_paypal_service),
) -> dict[str, bool]:
    try:
        event = json.loads(await request.body())
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid JSON body") from None
    if not isinstance(event, dict):
        raise HTTPException(status_code=400, detail="Invalid JSON body")

    if not await paypal.verify_webhook(event, dict(request.headers)):
        logger.warning("Rejected PayPal webhook {}", event.get("id"))
        raise HTTPException(status_code=400, detail="Invalid webhook signature")

    outcome = apply_paypal_event(event, orders)
    db.commit()
    logger.info("PayPal webhook {} -> {}", event.get("event_type"), outcome)
    return {"received": True}
