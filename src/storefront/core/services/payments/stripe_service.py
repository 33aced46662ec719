"""Stripe Checkout sessions and webhook handling."""

import json
from typing import Any

import stripe
from loguru import logger

from src.storefront.core.errors import NotConfiguredError, ProviderError, ValidationFailed
from src.storefront.core.services.sales.order_service import OrderService
from src.storefront.entities.catalog.product import Product
from src.storefront.entities.sales.order import Order, OrderItem
from src.storefront.runtime.config.config_data import StripeConfig


def to_cents(amount: float) -> int:
    return int(round(amount * 100))


class StripeService:
    def __init__(self, config: StripeConfig, public_url: str) -> None:
        self._config = config
        self._public_url = public_url.rstrip("/")

    @property
    def is_configured(self) -> bool:
        return self._config.is_configured

    def build_line_items(
        self,
        order: Order,
        items: list[OrderItem],
        products: dict[str, Product],
    ) -> list[dict[str, Any]]:
        """Checkout line items in cents, with shipping as its own line.

        A coupon discount cannot be expressed per line, so discounted orders are
        charged as a single line for the order total.
        """
        currency = self._config.currency
        if order.discount:
            return [
                {
                    "price_data": {
                        "currency": currency,
                        "product_data": {"name": f"Order {order.id[:8]}"},
                        "unit_amount": to_cents(order.total),
                    },
                    "quantity": 1,
                }
            ]

        line_items = []
        for item in items:
            product = products.get(item.product_id)
            name = product.name if product else f"Item {item.product_id}"
            details = " / ".join(filter(None, [item.size, item.color]))
            product_data: dict[str, Any] = {"name": name}
            if details:
                product_data["description"] = details
            line_items.append(
                {
                    "price_data": {
                        "currency": currency,
                        "product_data": product_data,
                        "unit_amount": to_cents(item.price),
                    },
                    "quantity": item.quantity,
                }
            )
        if order.shipping_cost:
            line_items.append(
                {
                    "price_data": {
                        "currency": currency,
                        "product_data": {"name": "Shipping"},
                        "unit_amount": to_cents(order.shipping_cost),
                    },
                    "quantity": 1,
                }
            )
        return line_items

    def create_checkout_session(
        self,
        order: Order,
        items: list[OrderItem],
        products: dict[str, Product],
        *,
        customer_email: str | None = None,
    ) -> dict[str, str]:
        if not self.is_configured:
            raise NotConfiguredError("Stripe is not configured")

        try:
            session = stripe.checkout.Session.create(
                api_key=self._config.secret_key,
                mode="payment",
                payment_method_types=["card"],
                line_items=self.build_line_items(order, items, products),
                customer_email=customer_email or order.customer_email,
                success_url=f"{self._public_url}/checkout/success?orderId={order.id}&paid=1",
                cancel_url=f"{self._public_url}/checkout?cancel=1",
                metadata={"orderId": order.id},
            )
        except stripe.StripeError as exc:
            logger.error("Stripe checkout session failed for order {}: {}", order.id, exc)
            raise ProviderError("Failed to create payment session") from exc

        logger.info("Created Stripe session {} for order {}", session.id, order.id)
        return {"url": session.url, "sessionId": session.id}

    def construct_event(self, payload: bytes, signature: str | None) -> dict[str, Any]:
        """Verify the signature and return the event as a plain dict."""
        if not self._config.webhook_secret:
            raise NotConfiguredError("Stripe webhook secret not configured")
        if not signature:
            raise ValidationFailed("Missing stripe-signature header")
        try:
            stripe.Webhook.construct_event(payload, signature, self._config.webhook_secret)
        except (ValueError, stripe.SignatureVerificationError) as exc:
            logger.warning("Stripe webhook signature verification failed: {}", exc)
            raise ValidationFailed("Webhook Error") from exc
        return json.loads(payload)

    def handle_event(self, event: dict[str, Any], orders: OrderService) -> None:
        """Apply a verified Stripe event to the local orders."""
        if event["type"] != "checkout.session.completed":
            logger.debug("Ignoring Stripe event {}", event["type"])
            return

        session = event["data"]["object"]
        metadata = session.get("metadata") or {}
        order_id = metadata.get("orderId")
        if not order_id:
            logger.warning("Stripe session {} has no orderId metadata", session.get("id"))
            return

        orders.mark_paid(order_id, "stripe")
        orders.record_stripe_payment(order_id, session.get("payment_intent"))
