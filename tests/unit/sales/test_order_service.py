"""Unit tests for order placement, settlement and admin reporting."""

import pytest
from sqlmodel import Session

from src.storefront.core.errors import ForbiddenError, ValidationFailed
from src.storefront.core.services.sales import (
    AmountsInput,
    CouponService,
    CustomerInput,
    OrderItemInput,
    OrderService,
    ShippingInput,
)
from src.storefront.entities.catalog.product import ProductRepository
from src.storefront.entities.core.user import User
from src.storefront.entities.sales.coupon import DiscountType
from src.storefront.entities.sales.order import OrderRepository, OrderStatus

CUSTOMER = CustomerInput(first_name="Ana", last_name="Silva", email="ana@example.com")
SHIPPING = ShippingInput(
    address="Rua Augusta 10", city="Lisboa", postal_code="1100-053", country="PT"
)


def place(
    session: Session,
    user: User,
    items: list[OrderItemInput],
    *,
    shipping: float = 5.0,
    total: float,
    coupon_code: str | None = None,
):
    return OrderService(session).create(
        user,
        items=items,
        customer=CUSTOMER,
        shipping=SHIPPING,
        payment_method="stripe",
        amounts=AmountsInput(subtotal=0, shipping=shipping, total=total),
        coupon_code=coupon_code,
    )


class TestOrderCreate:
    """Test checkout validation."""

    def test_prices_come_from_catalog(self, session: Session, customer, product):
        """Stored unit prices are the catalog prices."""
        order = place(session, customer, [OrderItemInput(product.id, 2)], total=85.0)

        assert order.status == OrderStatus.PENDING
        assert (order.subtotal, order.shipping_cost, order.total) == (80.0, 5.0, 85.0)
        items = OrderRepository(session).items_for(order.id)
        assert [(i.quantity, i.price) for i in items] == [(2, 40.0)]

    def test_total_mismatch_reports_expected_total(self, session: Session, customer, product):
        """A client total that differs from the server total is refused."""
        with pytest.raises(ValidationFailed) as exc_info:
            place(session, customer, [OrderItemInput(product.id, 1)], total=10.0)

        assert exc_info.value.extra == {"expectedTotal": 45.0}

    def test_total_within_tolerance_is_accepted(self, session: Session, customer, product):
        """Rounding differences of a cent are tolerated."""
        order = place(session, customer, [OrderItemInput(product.id, 1)], total=45.01)
        assert order.total == 45.0

    def test_unknown_product_is_refused(self, session: Session, customer):
        """Orders for products that do not exist fail."""
        with pytest.raises(ValidationFailed, match="not found or are inactive"):
            place(session, customer, [OrderItemInput("missing", 1)], total=5.0)

    def test_inactive_product_is_refused(self, session: Session, customer, product):
        """Hidden products cannot be ordered."""
        repo = ProductRepository(session)
        hidden = repo.get(product.id)
        hidden.is_active = False
        repo.update(hidden)

        with pytest.raises(ValidationFailed):
            place(session, customer, [OrderItemInput(product.id, 1)], total=45.0)

    def test_unknown_variant_is_refused(self, session: Session, customer, variant_product):
        """Size and colour must match an existing variant."""
        with pytest.raises(ValidationFailed, match="Variant not found"):
            place(
                session,
                customer,
                [OrderItemInput(variant_product.id, 1, size="XS", color="Azul")],
                total=60.0,
            )

    def test_insufficient_variant_stock_is_refused(
        self, session: Session, customer, variant_product
    ):
        """Quantities above the variant stock fail."""
        with pytest.raises(ValidationFailed, match="Insufficient stock"):
            place(
                session,
                customer,
                [OrderItemInput(variant_product.id, 1, size="L", color="azul")],
                total=60.0,
            )

    def test_coupon_discount_is_applied(self, session: Session, customer, product):
        """A valid coupon lowers the total and is recorded on the order."""
        CouponService(session).create(
            code="verao10", discount_type=DiscountType.PERCENT, value=10
        )

        order = place(
            session,
            customer,
            [OrderItemInput(product.id, 1)],
            total=41.0,
            coupon_code="VERAO10",
        )

        assert order.discount == 4.0
        assert order.coupon_code == "VERAO10"


class TestOrderAccess:
    """Test who may read and pay for an order."""

    def test_other_customer_cannot_view(self, session: Session, customer, admin, product):
        """Only the owner or an admin may read an order."""
        order = place(session, customer, [OrderItemInput(product.id, 1)], total=45.0)
        stranger = User(clerk_id="user_x", email="x@example.com")
        service = OrderService(session)

        with pytest.raises(ForbiddenError):
            service.get_for(stranger, order.id)
        view = service.get_for(admin, order.id)
        assert view.user.id == customer.id
        assert view.lines[0].image.public_id == "p/linho"

    def test_paid_order_is_not_pending(self, session: Session, customer, product):
        """Checkout is refused for orders already settled."""
        order = place(session, customer, [OrderItemInput(product.id, 1)], total=45.0)
        service = OrderService(session)
        service.mark_paid(order.id, "stripe")

        with pytest.raises(ValidationFailed, match="not pending"):
            service.get_pending_owned(customer, order.id)


class TestMarkPaid:
    """Test payment settlement."""

    def test_decrements_product_stock(self, session: Session, customer, product):
        """Paying takes the ordered units out of the product stock."""
        order = place(session, customer, [OrderItemInput(product.id, 3)], total=125.0)

        assert OrderService(session).mark_paid(order.id, "paypal") is True

        assert ProductRepository(session).get(product.id).stock == 7
        stored = OrderRepository(session).get(order.id)
        assert stored.status == OrderStatus.PAID
        assert stored.payment_method == "paypal"

    def test_decrements_matching_variant(self, session: Session, customer, variant_product):
        """Variant stock is decremented for the ordered size and colour."""
        order = place(
            session,
            customer,
            [OrderItemInput(variant_product.id, 2, size="M", color="Azul")],
            total=115.0,
        )
        OrderService(session).mark_paid(order.id, None)

        stock = {v.size: v.stock for v in ProductRepository(session).list_variants(variant_product.id)}
        assert stock == {"M": 1, "L": 0}

    def test_second_settlement_is_a_no_op(self, session: Session, customer, product):
        """A repeated payment callback does not decrement twice."""
        order = place(session, customer, [OrderItemInput(product.id, 1)], total=45.0)
        service = OrderService(session)

        assert service.mark_paid(order.id, "stripe") is True
        assert service.mark_paid(order.id, "stripe") is False
        assert ProductRepository(session).get(product.id).stock == 9

    def test_unknown_order_returns_false(self, session: Session):
        """Unknown orders are ignored."""
        assert OrderService(session).mark_paid("missing", "stripe") is False


class TestAdminOrders:
    """Test status changes and the dashboard."""

    def test_update_status_accepts_lowercase(self, session: Session, customer, product):
        """Statuses are matched case-insensitively and tracking codes trimmed."""
        order = place(session, customer, [OrderItemInput(product.id, 1)], total=45.0)

        updated = OrderService(session).update_status(order.id, "shipped", " CTT123 ")

        assert updated.status == OrderStatus.SHIPPED
        assert updated.tracking_code == "CTT123"

    def test_update_status_rejects_unknown(self, session: Session, customer, product):
        """Statuses outside the known set are refused."""
        order = place(session, customer, [OrderItemInput(product.id, 1)], total=45.0)

        with pytest.raises(ValidationFailed, match="Invalid status"):
            OrderService(session).update_status(order.id, "LOST")

    def test_dashboard_counts_settled_revenue(self, session: Session, customer, product):
        """Revenue only includes paid, shipped and delivered orders."""
        paid = place(session, customer, [OrderItemInput(product.id, 1)], total=45.0)
        place(session, customer, [OrderItemInput(product.id, 2)], total=85.0)
        service = OrderService(session)
        service.mark_paid(paid.id, "stripe")

        stats = service.dashboard()

        assert stats["total_orders"] == 2
        assert stats["total_users"] == 1
        assert stats["revenue"] == 45.0
        assert stats["revenue_by_payment_method"] == {"stripe": 45.0}
        assert len(stats["recent_orders"]) == 2


class TestPayPalResolution:
    """Test matching PayPal events to local orders."""

    def test_resolves_by_local_id_then_paypal_id(self, session: Session, customer, product):
        """Local ids win, stored PayPal ids are the fallback."""
        order = place(session, customer, [OrderItemInput(product.id, 1)], total=45.0)
        service = OrderService(session)
        service.set_paypal_order_id(order.id, "PAYPAL-1")

        assert service.resolve_paypal_order([None, order.id]).id == order.id
        assert service.resolve_paypal_order(["PAYPAL-1"]).id == order.id
        assert service.resolve_paypal_order(["nothing"]) is None

    def test_payment_instructions_move_order_to_processing(
        self, session: Session, customer, product
    ):
        """Storing Multibanco details marks the order as processing."""
        order = place(session, customer, [OrderItemInput(product.id, 1)], total=45.0)

        updated = OrderService(session).add_payment_instructions(
            order.id, {"entity": "12345", "reference": "999"}, method="multibanco"
        )

        assert updated.status == OrderStatus.PROCESSING
        assert updated.payment_method == "multibanco"
        assert updated.payment_instructions == [{"entity": "12345", "reference": "999"}]
