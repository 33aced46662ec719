"""API tests for the Stripe and PayPal endpoints with the providers mocked."""

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session

from src.storefront.core.errors import ValidationFailed
from src.storefront.entities.catalog.product import ProductRepository
from src.storefront.entities.sales.order import (
    Order,
    OrderItem,
    OrderRepository,
    OrderStatus,
)


@pytest.fixture
def pending_order(session: Session, customer, product) -> Order:
    return OrderRepository(session).create(
        Order(user_id=customer.id, subtotal=40, shipping_cost=5, total=45),
        [OrderItem(order_id="", product_id=product.id, quantity=2, price=20)],
    )


class TestStripe:
    """Test Stripe checkout and webhooks."""

    def test_checkout_session(
        self, client: TestClient, customer_headers, pending_order: Order, product, app_deps
    ):
        """Checkout hands the order, its items and their products to Stripe."""
        stripe = app_deps.stripe_service
        stripe.create_checkout_session.return_value = {
            "url": "https://checkout.stripe.test/cs_1",
            "sessionId": "cs_1",
        }

        response = client.post(
            "/api/stripe/checkout", json={"orderId": pending_order.id}, headers=customer_headers
        )

        assert response.json()["sessionId"] == "cs_1"
        order, items, products = stripe.create_checkout_session.call_args.args
        assert order.id == pending_order.id
        assert [item.quantity for item in items] == [2]
        assert set(products) == {product.id}

    def test_checkout_for_someone_elses_order(
        self, client: TestClient, auth_headers, pending_order: Order
    ):
        """Only the owner can pay for an order."""
        response = client.post(
            "/api/stripe/checkout",
            json={"orderId": pending_order.id},
            headers=auth_headers("user_other", email="other@example.com"),
        )
        assert response.status_code == 403

    def test_webhook_passes_raw_body_and_signature(self, client: TestClient, app_deps):
        """The raw payload and signature header reach the verifier."""
        stripe = app_deps.stripe_service
        stripe.construct_event.return_value = {"type": "checkout.session.completed"}

        response = client.post(
            "/api/stripe/webhook",
            content=b'{"id": "evt_1"}',
            headers={"stripe-signature": "t=1,v1=abc"},
        )

        assert response.json() == {"received": True}
        stripe.construct_event.assert_called_once_with(b'{"id": "evt_1"}', "t=1,v1=abc")
        stripe.handle_event.assert_called_once()

    def test_webhook_bad_signature(self, client: TestClient, app_deps):
        """Verification failures are a 400."""
        app_deps.stripe_service.construct_event.side_effect = ValidationFailed("Webhook Error")

        response = client.post("/api/stripe/webhook", content=b"{}")

        assert response.status_code == 400
        assert response.json()["detail"] == "Webhook Error"


class TestPayPal:
    """Test PayPal checkout, capture, Multibanco and webhooks."""

    def test_checkout_stores_paypal_order_id(
        self,
        client: TestClient,
        session: Session,
        customer_headers,
        pending_order: Order,
        product,
        app_deps,
    ):
        """The PayPal order id is kept on the local order."""
        app_deps.paypal_service.create_order.return_value = {
            "id": "PP-1",
            "approveUrl": "https://paypal.test/approve",
        }

        response = client.post(
            "/api/paypal/checkout", json={"orderId": pending_order.id}, headers=customer_headers
        )

        assert response.json()["approveUrl"] == "https://paypal.test/approve"
        assert OrderRepository(session).get(pending_order.id).paypal_order_id == "PP-1"
        _, _, products = app_deps.paypal_service.create_order.call_args.args
        assert products[product.id].name == product.name

    def test_capture_marks_paid_and_takes_stock(
        self,
        client: TestClient,
        session: Session,
        customer_headers,
        pending_order: Order,
        product,
        app_deps,
    ):
        """A successful capture settles the order."""
        app_deps.paypal_service.capture.return_value = {"status": "COMPLETED"}

        response = client.post(
            "/api/paypal/capture",
            json={"orderId": pending_order.id, "token": "PP-1"},
            headers=customer_headers,
        )

        assert response.json() == {"ok": True, "status": "COMPLETED"}
        assert OrderRepository(session).get(pending_order.id).status == OrderStatus.PAID
        assert ProductRepository(session).get(product.id).stock == 8

    @pytest.mark.parametrize(
        "status", [OrderStatus.PAID, OrderStatus.SHIPPED, OrderStatus.DELIVERED]
    )
    def test_capture_skips_settled_orders(
        self,
        client: TestClient,
        session: Session,
        customer_headers,
        pending_order: Order,
        app_deps,
        status: OrderStatus,
    ):
        """Orders that were already paid are not captured again."""
        pending_order.status = status
        OrderRepository(session).update(pending_order)

        response = client.post(
            "/api/paypal/capture",
            json={"orderId": pending_order.id, "token": "PP-1"},
            headers=customer_headers,
        )

        assert response.json() == {"ok": True, "alreadyPaid": True}
        app_deps.paypal_service.capture.assert_not_called()
        assert OrderRepository(session).get(pending_order.id).status == status

    def test_capture_without_token(self, client: TestClient, customer_headers, pending_order: Order):
        """Capture needs the PayPal order id from the return URL or the order."""
        response = client.post(
            "/api/paypal/capture", json={"orderId": pending_order.id}, headers=customer_headers
        )
        assert response.status_code == 400

    def test_multibanco_requires_full_name(
        self, client: TestClient, customer_headers, pending_order: Order
    ):
        """Multibanco needs the payer's name."""
        response = client.post(
            "/api/paypal/multibanco",
            json={"orderId": pending_order.id, "fullName": "  "},
            headers=customer_headers,
        )

        assert response.status_code == 400
        assert response.json()["detail"] == "Full name is required for Multibanco"

    def test_webhook_rejects_unverified_event(self, client: TestClient, app_deps):
        """Events PayPal does not vouch for are refused."""
        app_deps.paypal_service.verify_webhook.return_value = False

        response = client.post("/api/paypal/webhook", json={"id": "WH-1"})

        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid webhook signature"

    def test_webhook_invalid_json(self, client: TestClient):
        """Non-JSON bodies are a 400."""
        response = client.post("/api/paypal/webhook", content=b"not json")
        assert response.status_code == 400

    def test_webhook_completed_capture(
        self, client: TestClient, session: Session, pending_order: Order, app_deps
    ):
        """A verified completed capture settles the matching order."""
        app_deps.paypal_service.verify_webhook.return_value = True

        response = client.post(
            "/api/paypal/webhook",
            json={
                "id": "WH-2",
                "event_type": "PAYMENT.CAPTURE.COMPLETED",
                "resource": {"custom_id": pending_order.id},
            },
        )

        assert response.json() == {"received": True}
        assert OrderRepository(session).get(pending_order.id).status == OrderStatus.PAID
