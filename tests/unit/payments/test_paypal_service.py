"""Unit tests for the PayPal client and webhook event handling."""

import json

import httpx
import pytest
from sqlmodel import Session

from src.storefront.core.errors import NotConfiguredError, ProviderError, ValidationFailed
from src.storefront.core.services.payments import PayPalService, apply_paypal_event
from src.storefront.core.services.payments.paypal_service import (
    multibanco_instructions,
    order_id_candidates,
)
from src.storefront.core.services.sales import OrderService
from src.storefront.entities.catalog.product import Product
from src.storefront.entities.sales.order import (
    Order,
    OrderItem,
    OrderRepository,
    OrderStatus,
)
from src.storefront.runtime.config.config_data import PayPalConfig

CONFIG = PayPalConfig(client_id="client", client_secret="secret", webhook_id="WH-1")


class FakePayPal:
    """Records requests and answers them like the sandbox API."""

    def __init__(self, verification_status: str | None = "SUCCESS") -> None:
        self.requests: list[httpx.Request] = []
        self.verification_status = verification_status

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if path == "/v1/oauth2/token":
            return httpx.Response(200, json={"access_token": "tok", "expires_in": 3600})
        if path == "/v2/checkout/orders":
            return httpx.Response(
                201,
                json={
                    "id": "PP-1",
                    "links": [{"rel": "approve", "href": "https://paypal.test/approve"}],
                },
            )
        if path.endswith("/confirm-payment-source"):
            return httpx.Response(
                200,
                json={"links": [{"rel": "payer-action", "href": "https://paypal.test/mb"}]},
            )
        if path == "/v2/checkout/orders/PP-1" and request.method == "GET":
            return httpx.Response(
                200, json={"purchase_units": [{"amount": {"value": "45.00"}}]}
            )
        if path.endswith("/capture"):
            return httpx.Response(201, json={"id": "PP-1", "status": "COMPLETED"})
        if path == "/v1/notifications/verify-webhook-signature":
            if self.verification_status is None:
                return httpx.Response(503, json={"name": "SERVICE_UNAVAILABLE"})
            return httpx.Response(200, json={"verification_status": self.verification_status})
        return httpx.Response(404, json={"name": "RESOURCE_NOT_FOUND"})

    def paths(self) -> list[str]:
        return [request.url.path for request in self.requests]


def make_service(fake: FakePayPal, config: PayPalConfig = CONFIG) -> PayPalService:
    return PayPalService(config, "https://shop.test", transport=httpx.MockTransport(fake))


def sample_order() -> tuple[Order, list[OrderItem]]:
    order = Order(subtotal=40.0, shipping_cost=5.0, total=45.0)
    items = [OrderItem(order_id=order.id, product_id="p1", quantity=2, price=20.0)]
    return order, items


class TestPurchaseUnit:
    """Test the amounts sent to PayPal."""

    def test_breakdown_matches_order(self):
        """Item total and shipping add up to the order total."""
        order, items = sample_order()

        unit = make_service(FakePayPal()).build_purchase_unit(order, items)

        assert unit["reference_id"] == order.id
        assert unit["amount"]["value"] == "45.00"
        assert unit["amount"]["breakdown"]["item_total"]["value"] == "40.00"
        assert unit["items"][0]["quantity"] == "2"

    def test_items_carry_product_names(self):
        """Line items show the product name with its size and color."""
        order, items = sample_order()
        items[0].size = "M"
        items[0].color = "Azul"
        products = {"p1": Product(id="p1", name="Blusa Linho", price=20.0, category_id="c1")}

        unit = make_service(FakePayPal()).build_purchase_unit(order, items, products)

        assert unit["items"][0]["name"] == "Blusa Linho (M / Azul)"
        assert unit["items"][0]["sku"] == "p1"

    def test_inconsistent_order_is_refused(self):
        """Stored totals that do not add up are refused before calling PayPal."""
        order, items = sample_order()
        order.total = 60.0

        with pytest.raises(ValidationFailed):
            make_service(FakePayPal()).build_purchase_unit(order, items)


class TestPayPalClient:
    """Test the REST calls against a fake PayPal."""

    async def test_create_order_returns_approval_link(self):
        """Creating an order fetches a token once and returns the approve link."""
        fake = FakePayPal()
        service = make_service(fake)
        order, items = sample_order()

        first = await service.create_order(order, items)
        await service.create_order(order, items)

        assert first == {"id": "PP-1", "approveUrl": "https://paypal.test/approve"}
        assert fake.paths().count("/v1/oauth2/token") == 1
        assert fake.requests[1].headers["PayPal-Request-Id"] == order.id
        assert fake.requests[1].headers["Authorization"] == "Bearer tok"

    async def test_multibanco_confirms_payment_source(self):
        """Multibanco creates an order then confirms the payment source."""
        fake = FakePayPal()
        order, _ = sample_order()

        started = await make_service(fake).create_multibanco(order, "Ana Silva")

        assert started == {"orderId": "PP-1", "redirectUrl": "https://paypal.test/mb"}
        assert fake.requests[1].headers["PayPal-Request-Id"] == f"{order.id}-multibanco"
        created = json.loads(fake.requests[1].content)
        assert created["purchase_units"][0]["amount"]["currency_code"] == "EUR"
        confirm = json.loads(fake.requests[2].content)
        assert confirm["payment_source"]["multibanco"] == {
            "name": "Ana Silva",
            "country_code": "PT",
        }

    async def test_multibanco_uses_configured_currency(self):
        """The Multibanco order amount follows the configured currency."""
        fake = FakePayPal()
        order, _ = sample_order()
        config = CONFIG.model_copy(update={"currency": "USD"})

        await make_service(fake, config).create_multibanco(order, "Ana Silva")

        created = json.loads(fake.requests[1].content)
        assert created["purchase_units"][0]["amount"] == {"currency_code": "USD", "value": "45.00"}

    async def test_capture_fetches_then_captures(self):
        """Capture checks the remote amount before capturing."""
        fake = FakePayPal()
        order, _ = sample_order()

        captured = await make_service(fake).capture(order, "PP-1")

        assert captured["status"] == "COMPLETED"
        assert fake.paths()[-2:] == ["/v2/checkout/orders/PP-1", "/v2/checkout/orders/PP-1/capture"]

    async def test_error_response_raises_provider_error(self):
        """A PayPal error status becomes a provider error."""
        with pytest.raises(ProviderError):
            await make_service(FakePayPal()).get_order("UNKNOWN")

    async def test_requires_credentials(self):
        """Calls fail as not configured without credentials."""
        service = make_service(FakePayPal(), PayPalConfig())
        order, items = sample_order()

        with pytest.raises(NotConfiguredError):
            await service.create_order(order, items)

    async def test_verify_webhook(self):
        """Verification reads PayPal's verdict."""
        headers = {"paypal-transmission-id": "t-1", "paypal-auth-algo": "SHA256withRSA"}

        fake = FakePayPal()
        assert await make_service(fake).verify_webhook({"id": "WH"}, headers) is True
        sent = json.loads(fake.requests[-1].content)
        assert sent["transmission_id"] == "t-1"
        assert sent["webhook_id"] == "WH-1"

        assert (
            await make_service(FakePayPal("FAILURE")).verify_webhook({"id": "WH"}, headers)
            is False
        )

    async def test_verify_webhook_api_failure_is_unverified(self):
        """A failing verification API rejects the delivery instead of erroring."""
        service = make_service(FakePayPal(verification_status=None))

        assert await service.verify_webhook({"id": "WH"}, {}) is False


class TestEventParsing:
    """Test extraction of ids and Multibanco details from events."""

    def test_order_id_candidates_order(self):
        """Related order id, reference id, custom id and resource id, in that order."""
        event = {
            "resource": {
                "id": "CAP-1",
                "custom_id": "local-1",
                "supplementary_data": {"related_ids": {"order_id": "PP-1"}},
                "purchase_units": [{"reference_id": "local-2"}],
            }
        }
        assert order_id_candidates(event) == ["PP-1", "local-2", "local-1", "CAP-1"]

    def test_multibanco_instructions_from_capture(self):
        """Multibanco details may sit on the capture's payment source."""
        event = {
            "resource": {
                "purchase_units": [
                    {
                        "payments": {
                            "captures": [
                                {
                                    "payment_source": {
                                        "multibanco": {
                                            "payment_entity": "12345",
                                            "payment_reference": "987654321",
                                            "barcode_url": "https://paypal.test/bar.png",
                                        }
                                    }
                                }
                            ]
                        }
                    }
                ]
            }
        }
        assert multibanco_instructions(event) == {
            "provider": "paypal",
            "type": "multibanco",
            "entity": "12345",
            "reference": "987654321",
            "barcodeUrl": "https://paypal.test/bar.png",
        }

    def test_no_multibanco_source(self):
        """Events without Multibanco details yield nothing."""
        assert multibanco_instructions({"resource": {}}) is None


class TestApplyEvent:
    """Test webhook events against stored orders."""

    @pytest.fixture
    def order(self, session: Session, customer, product) -> Order:
        created = OrderRepository(session).create(
            Order(user_id=customer.id, subtotal=40, total=40, payment_method="paypal"),
            [OrderItem(order_id="", product_id=product.id, quantity=1, price=40)],
        )
        OrderService(session).set_paypal_order_id(created.id, "PP-9")
        return created

    def test_unknown_event_type_is_ignored(self, session: Session, order: Order):
        """Unrelated event types are ignored."""
        event = {"event_type": "BILLING.PLAN.CREATED", "resource": {}}
        assert apply_paypal_event(event, OrderService(session)) == "ignored"

    def test_capture_completed_marks_paid(self, session: Session, order: Order):
        """A completed capture settles the order matched by PayPal order id."""
        event = {
            "event_type": "PAYMENT.CAPTURE.COMPLETED",
            "resource": {
                "id": "CAP-1",
                "supplementary_data": {"related_ids": {"order_id": "PP-9"}},
            },
        }

        assert apply_paypal_event(event, OrderService(session)) == "paid"
        assert OrderRepository(session).get(order.id).status == OrderStatus.PAID
        assert apply_paypal_event(event, OrderService(session)) == "already-settled"

    def test_pending_capture_stores_multibanco_reference(
        self, session: Session, order: Order
    ):
        """A pending Multibanco capture stores the reference and marks processing."""
        event = {
            "event_type": "PAYMENT.CAPTURE.PENDING",
            "resource": {
                "custom_id": order.id,
                "payment_source": {
                    "multibanco": {"payment_entity": "11111", "payment_reference": "222"}
                },
            },
        }

        assert apply_paypal_event(event, OrderService(session)) == "processing"
        stored = OrderRepository(session).get(order.id)
        assert stored.status == OrderStatus.PROCESSING
        assert stored.payment_instructions[0]["reference"] == "222"

    def test_unmatched_event(self, session: Session, order: Order):
        """Events pointing at no known order are reported as unmatched."""
        event = {"event_type": "CHECKOUT.ORDER.APPROVED", "resource": {"id": "PP-404"}}
        assert apply_paypal_event(event, OrderService(session)) == "unmatched"
