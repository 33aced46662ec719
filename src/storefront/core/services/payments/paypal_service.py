"""PayPal Orders v2 over httpx: checkout, capture, Multibanco and webhooks."""

import time
from typing import Any

import httpx
from loguru import logger

from src.storefront.core.errors import NotConfiguredError, ProviderError, ValidationFailed
from src.storefront.core.services.sales.order_service import OrderService
from src.storefront.entities.catalog.product import Product
from src.storefront.entities.sales.order import Order, OrderItem, OrderStatus
from src.storefront.runtime.config.config_data import PayPalConfig

WEBHOOK_HEADERS = {
    "auth_algo": "paypal-auth-algo",
    "cert_url": "paypal-cert-url",
    "transmission_id": "paypal-transmission-id",
    "transmission_sig": "paypal-transmission-sig",
    "transmission_time": "paypal-transmission-time",
}

# Refresh the OAuth token this many seconds before PayPal expires it
TOKEN_EXPIRY_MARGIN = 60

TOTAL_TOLERANCE = 0.01
CAPTURE_MISMATCH_TOLERANCE = 0.5

# PayPal rejects item names longer than this
ITEM_NAME_MAX = 127


def money(currency: str, amount: float) -> dict[str, str]:
    return {"currency_code": currency, "value": f"{amount:.2f}"}


def order_id_candidates(event: dict[str, Any]) -> list[str | None]:
    """Ids in a PayPal webhook event that may point back to a local order."""
    resource = event.get("resource") or {}
    related = (resource.get("supplementary_data") or {}).get("related_ids") or {}
    units = resource.get("purchase_units") or [{}]
    return [
        related.get("order_id"),
        units[0].get("reference_id"),
        resource.get("custom_id"),
        resource.get("id"),
    ]


def _item_name(item: OrderItem, product: Product | None) -> str:
    name = product.name if product else f"Item {item.product_id}"
    details = " / ".join(filter(None, [item.size, item.color]))
    if details:
        name = f"{name} ({details})"
    return name[:ITEM_NAME_MAX]


def multibanco_instructions(event: dict[str, Any]) -> dict[str, Any] | None:
    resource = event.get("resource") or {}
    units = resource.get("purchase_units") or [{}]
    captures = (units[0].get("payments") or {}).get("captures") or [{}]
    source = resource.get("payment_source") or captures[0].get("payment_source") or {}
    multibanco = source.get("multibanco")
    if not multibanco:
        return None
    return {
        "provider": "paypal",
        "type": "multibanco",
        "entity": multibanco.get("payment_entity"),
        "reference": multibanco.get("payment_reference"),
        "barcodeUrl": multibanco.get("barcode_url"),
    }


class PayPalService:
    """Client for the PayPal REST API.

    The client-credentials token is cached on the instance until shortly before
    it expires, so the service is meant to live for the whole application.
    """

    def __init__(
        self,
        config: PayPalConfig,
        public_url: str,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._config = config
        self._public_url = public_url.rstrip("/")
        self._transport = transport
        self._token: str | None = None
        self._token_expires_at = 0.0

    @property
    def is_configured(self) -> bool:
        return self._config.is_configured

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self._config.base_url,
            timeout=self._config.timeout_seconds,
            transport=self._transport,
        )

    async def _access_token(self) -> str:
        if not self.is_configured:
            raise NotConfiguredError("PayPal credentials not configured")
        if self._token and time.monotonic() < self._token_expires_at:
            return self._token

        try:
            async with self._client() as client:
                resp = await client.post(
                    "/v1/oauth2/token",
                    auth=(self._config.client_id, self._config.client_secret),
                    data={"grant_type": "client_credentials"},
                )
                resp.raise_for_status()
                data = resp.json()
        except httpx.HTTPError as exc:
            logger.error("PayPal token request failed: {}", exc)
            raise ProviderError("Failed to authenticate with PayPal") from exc

        self._token = data["access_token"]
        expires_in = int(data.get("expires_in", 0))
        self._token_expires_at = time.monotonic() + max(expires_in - TOKEN_EXPIRY_MARGIN, 0)
        return self._token

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        error: str,
    ) -> dict[str, Any]:
        token = await self._access_token()
        try:
            async with self._client() as client:
                resp = await client.request(
                    method,
                    path,
                    json=json,
                    headers={"Authorization": f"Bearer {token}", **(headers or {})},
                )
        except httpx.HTTPError as exc:
            logger.error("PayPal {} {} failed: {}", method, path, exc)
            raise ProviderError(error) from exc

        if resp.is_error:
            logger.error("PayPal {} {} returned {}: {}", method, path, resp.status_code, resp.text)
            raise ProviderError(error)
        return resp.json() if resp.content else {}

    def _return_urls(self, order_id: str, provider: str) -> dict[str, str]:
        return {
            "return_url": f"{self._public_url}/checkout/success?orderId={order_id}&provider={provider}",
            "cancel_url": f"{self._public_url}/checkout?cancel=1",
        }

    # --- checkout ---

    def build_purchase_unit(
        self,
        order: Order,
        items: list[OrderItem],
        products: dict[str, Product] | None = None,
    ) -> dict[str, Any]:
        currency = self._config.currency
        products = products or {}
        item_total = round(sum(item.line_total for item in items), 2)
        expected = round(item_total + order.shipping_cost - order.discount, 2)
        if abs(expected - order.total) > TOTAL_TOLERANCE:
            logger.warning(
                "Order {} total mismatch: stored {} computed {}", order.id, order.total, expected
            )
            raise ValidationFailed("Order amounts do not match")

        breakdown = {
            "item_total": money(currency, item_total),
            "shipping": money(currency, order.shipping_cost),
        }
        if order.discount:
            breakdown["discount"] = money(currency, order.discount)
        return {
            "reference_id": order.id,
            "custom_id": order.id,
            "amount": {**money(currency, order.total), "breakdown": breakdown},
            "items": [
                {
                    "name": _item_name(item, products.get(item.product_id)),
                    "unit_amount": money(currency, item.price),
                    "quantity": str(item.quantity),
                    "sku": item.product_id,
                }
                for item in items
            ],
        }

    async def create_order(
        self,
        order: Order,
        items: list[OrderItem],
        products: dict[str, Product] | None = None,
    ) -> dict[str, Any]:
        """Create a CAPTURE order; returns PayPal's id and the approval link."""
        created = await self._request(
            "POST",
            "/v2/checkout/orders",
            json={
                "intent": "CAPTURE",
                "purchase_units": [self.build_purchase_unit(order, items, products)],
                "application_context": {
                    "brand_name": self._config.brand_name,
                    **self._return_urls(order.id, "paypal"),
                },
            },
            headers={"PayPal-Request-Id": order.id},
            error="Failed to create PayPal order",
        )
        approve = next(
            (link["href"] for link in created.get("links", []) if link.get("rel") == "approve"),
            None,
        )
        logger.info("Created PayPal order {} for order {}", created.get("id"), order.id)
        return {"id": created.get("id"), "approveUrl": approve}

    async def create_multibanco(self, order: Order, full_name: str) -> dict[str, Any]:
        """Create an order and confirm Multibanco as its payment source."""
        created = await self._request(
            "POST",
            "/v2/checkout/orders",
            json={
                "intent": "CAPTURE",
                "purchase_units": [
                    {
                        "reference_id": order.id,
                        "custom_id": order.id,
                        "amount": money(self._config.currency, order.total),
                    }
                ],
                "application_context": self._return_urls(order.id, "multibanco"),
            },
            headers={"PayPal-Request-Id": f"{order.id}-multibanco"},
            error="Failed to create PayPal order",
        )
        confirmed = await self._request(
            "POST",
            f"/v2/checkout/orders/{created['id']}/confirm-payment-source",
            json={
                "payment_source": {
                    "multibanco": {"name": full_name, "country_code": "PT"}
                },
                "processing_instruction": "ORDER_COMPLETE_ON_PAYMENT_APPROVAL",
                "application_context": {
                    "locale": "pt-PT",
                    **self._return_urls(order.id, "multibanco"),
                },
            },
            error="Failed to confirm Multibanco payment",
        )
        redirect = next(
            (
                link["href"]
                for link in confirmed.get("links", [])
                if link.get("rel") in ("payer-action", "approve")
            ),
            None,
        )
        logger.info("Started Multibanco payment {} for order {}", created["id"], order.id)
        return {"orderId": created["id"], "redirectUrl": redirect}

    async def get_order(self, paypal_order_id: str) -> dict[str, Any]:
        return await self._request(
            "GET",
            f"/v2/checkout/orders/{paypal_order_id}",
            error="Failed to fetch PayPal order",
        )

    async def capture_order(self, paypal_order_id: str) -> dict[str, Any]:
        return await self._request(
            "POST",
            f"/v2/checkout/orders/{paypal_order_id}/capture",
            json={},
            error="Failed to capture PayPal order",
        )

    async def capture(self, order: Order, paypal_order_id: str) -> dict[str, Any]:
        """Check the PayPal order amount against ours, then capture it."""
        remote = await self.get_order(paypal_order_id)
        units = remote.get("purchase_units") or [{}]
        remote_total = float((units[0].get("amount") or {}).get("value") or 0)
        if abs(remote_total - order.total) > CAPTURE_MISMATCH_TOLERANCE:
            logger.warning(
                "PayPal amount mismatch for order {}: paypal {} local {}",
                order.id,
                remote_total,
                order.total,
            )
        captured = await self.capture_order(paypal_order_id)
        logger.info("Captured PayPal order {} for order {}", paypal_order_id, order.id)
        return captured

    # --- webhooks ---

    async def verify_webhook(self, event: dict[str, Any], headers: dict[str, str]) -> bool:
        """Ask PayPal whether the delivery is authentic.

        An unreachable or failing verification API counts as unverified.
        """
        if not self._config.webhook_id:
            raise NotConfiguredError("PayPal webhook id not configured")
        try:
            result = await self._request(
                "POST",
                "/v1/notifications/verify-webhook-signature",
                json={
                    **{field: headers.get(name) for field, name in WEBHOOK_HEADERS.items()},
                    "webhook_id": self._config.webhook_id,
                    "webhook_event": event,
                },
                error="Failed to verify PayPal webhook",
            )
        except ProviderError:
            logger.warning("PayPal webhook {} could not be verified", event.get("id"))
            return False
        return result.get("verification_status") == "SUCCESS"


def apply_paypal_event(event: dict[str, Any], orders: OrderService) -> str:
    """Apply a verified PayPal webhook event to the matching local order.

    Returns a short outcome label used for logging.
    """
    event_type = event.get("event_type")
    logger.info("PayPal webhook {} ({})", event_type, event.get("id"))

    if event_type not in (
        "PAYMENT.CAPTURE.PENDING",
        "CHECKOUT.ORDER.APPROVED",
        "PAYMENT.CAPTURE.COMPLETED",
    ):
        return "ignored"

    order = orders.resolve_paypal_order(order_id_candidates(event))
    if order is None:
        logger.warning("PayPal webhook {} did not match any order", event_type)
        return "unmatched"

    if event_type == "PAYMENT.CAPTURE.PENDING":
        instructions = multibanco_instructions(event)
        if instructions is None:
            return "ignored"
        orders.add_payment_instructions(order.id, instructions, method="multibanco")
        return "processing"

    method = "multibanco" if order.payment_method == "multibanco" else "paypal"
    if order.status not in (OrderStatus.PENDING, OrderStatus.PROCESSING):
        return "already-settled"
    orders.mark_paid(order.id, method)
    return "paid"
