from dataclasses import dataclass, field
from typing import Any

from loguru import logger
from sqlmodel import Session

from src.storefront.core.errors import ForbiddenError, NotFoundError, ValidationFailed
from src.storefront.core.services.sales.coupon_service import CouponService
from src.storefront.entities.catalog.product import (
    Product,
    ProductImage,
    ProductRepository,
)
from src.storefront.entities.core.user import User, UserRepository
from src.storefront.entities.sales.order import (
    PAYABLE_STATUSES,
    Order,
    OrderItem,
    OrderRepository,
    OrderStatus,
)

TOTAL_TOLERANCE = 0.01


@dataclass
class OrderItemInput:
    product_id: str
    quantity: int
    size: str | None = None
    color: str | None = None


@dataclass
class CustomerInput:
    first_name: str
    last_name: str
    email: str
    phone: str | None = None


@dataclass
class ShippingInput:
    address: str
    city: str
    postal_code: str
    country: str
    state: str | None = None
    complement: str | None = None


@dataclass
class AmountsInput:
    subtotal: float
    shipping: float
    total: float


@dataclass
class OrderLine:
    item: OrderItem
    product: Product | None
    image: ProductImage | None


@dataclass
class OrderView:
    order: Order
    lines: list[OrderLine] = field(default_factory=list)
    user: User | None = None


class OrderService:
    """Order placement, lookup, admin status changes and payment settlement."""

    def __init__(self, session: Session) -> None:
        self._session = session
        self._orders = OrderRepository(session)
        self._products = ProductRepository(session)
        self._users = UserRepository(session)

    # --- placement ---

    def create(
        self,
        user: User,
        *,
        items: list[OrderItemInput],
        customer: CustomerInput,
        shipping: ShippingInput,
        payment_method: str,
        amounts: AmountsInput,
        notes: str | None = None,
        coupon_code: str | None = None,
    ) -> Order:
        """Validate a checkout and store it as a PENDING order.

        Prices are taken from the catalog, never from the client; stock is only
        checked here and is decremented when the order is paid.
        """
        if not items:
            raise ValidationFailed("Order has no items")

        product_ids = list(dict.fromkeys(item.product_id for item in items))
        products = self._products.get_many(product_ids)
        missing = [
            pid for pid in product_ids
            if pid not in products or not products[pid].is_active or products[pid].is_deleted
        ]
        if missing:
            raise ValidationFailed(
                f"Some products were not found or are inactive: {', '.join(missing)}"
            )

        variants = self._products.variants_for(product_ids)
        order_items: list[OrderItem] = []
        subtotal = 0.0
        for item in items:
            product = products[item.product_id]
            product_variants = variants.get(product.id, [])
            if product_variants and (item.size or item.color):
                variant = next(
                    (v for v in product_variants if v.matches(item.size, item.color)), None
                )
                if variant is None:
                    raise ValidationFailed(f"Variant not found for product {product.name}")
                if variant.stock < item.quantity:
                    raise ValidationFailed(f"Insufficient stock for {product.name}")

            price = product.effective_price
            subtotal += price * item.quantity
            order_items.append(
                OrderItem(
                    order_id="",
                    product_id=product.id,
                    quantity=item.quantity,
                    price=price,
                    size=(item.size or "").strip() or None,
                    color=(item.color or "").strip() or None,
                )
            )
        subtotal = round(subtotal, 2)

        discount = 0.0
        code = None
        if coupon_code:
            coupon = CouponService(self._session).get_usable(coupon_code)
            discount = coupon.discount_for(subtotal)
            code = coupon.code

        shipping_cost = round(max(amounts.shipping, 0), 2)
        total = round(subtotal + shipping_cost - discount, 2)
        if abs(total - amounts.total) > TOTAL_TOLERANCE:
            logger.warning(
                "Order total mismatch for user {}: client {} server {}",
                user.id,
                amounts.total,
                total,
            )
            raise ValidationFailed("Order amounts do not match", expectedTotal=total)

        order = self._orders.create(
            Order(
                user_id=user.id,
                status=OrderStatus.PENDING,
                subtotal=subtotal,
                shipping_cost=shipping_cost,
                discount=discount,
                total=total,
                coupon_code=code,
                customer_first_name=customer.first_name,
                customer_last_name=customer.last_name,
                customer_email=customer.email,
                customer_phone=customer.phone,
                shipping_address=shipping.address,
                shipping_city=shipping.city,
                shipping_postal_code=shipping.postal_code,
                shipping_state=shipping.state,
                shipping_country=shipping.country,
                shipping_complement=shipping.complement,
                payment_method=payment_method,
                notes=notes or None,
            ),
            order_items,
        )
        logger.info("Created order {} for user {} ({} items)", order.id, user.id, len(order_items))
        return order

    # --- reads ---

    def _views(self, orders: list[Order], *, with_user: bool = False) -> list[OrderView]:
        items = self._orders.items_for_orders([order.id for order in orders])
        product_ids = {item.product_id for lines in items.values() for item in lines}
        products = self._products.get_many(product_ids)
        images = self._products.first_images(product_ids)
        views = []
        for order in orders:
            views.append(
                OrderView(
                    order=order,
                    lines=[
                        OrderLine(
                            item=item,
                            product=products.get(item.product_id),
                            image=images.get(item.product_id),
                        )
                        for item in items.get(order.id, [])
                    ],
                    user=self._users.get(order.user_id) if with_user and order.user_id else None,
                )
            )
        return views

    def list_for_user(self, user: User) -> list[OrderView]:
        return self._views(self._orders.list_for_user(user.id))

    def list_all(self, *, status: str | None = None) -> list[OrderView]:
        return self._views(self._orders.list_all(status=status), with_user=True)

    def get_for(self, user: User, order_id: str) -> OrderView:
        order = self._orders.get(order_id)
        if order is None:
            raise NotFoundError("Order not found")
        if order.user_id != user.id and not user.is_admin:
            raise ForbiddenError("Not allowed to view this order")
        return self._views([order], with_user=user.is_admin)[0]

    def get_pending_owned(self, user: User, order_id: str) -> tuple[Order, list[OrderItem]]:
        """Load an order the caller is about to pay for."""
        order = self._orders.get(order_id)
        if order is None:
            raise NotFoundError("Order not found")
        if order.user_id != user.id:
            raise ForbiddenError("Not allowed to pay for this order")
        if order.status != OrderStatus.PENDING:
            raise ValidationFailed("Order is not pending")
        return order, self._orders.items_for(order.id)

    def get_owned(self, user: User, order_id: str) -> tuple[Order, list[OrderItem]]:
        order = self._orders.get(order_id)
        if order is None:
            raise NotFoundError("Order not found")
        if order.user_id != user.id:
            raise ForbiddenError("Not allowed to access this order")
        return order, self._orders.items_for(order.id)

    # --- admin ---

    def update_status(
        self, order_id: str, status: str | None, tracking_code: str | None = None
    ) -> Order:
        """Set any known status; there is no transition table."""
        if not status:
            raise ValidationFailed("Status is required")
        try:
            new_status = OrderStatus(status.upper())
        except ValueError:
            raise ValidationFailed(f"Invalid status: {status}") from None

        order = self._orders.get(order_id)
        if order is None:
            raise NotFoundError("Order not found")

        order.status = new_status
        order.tracking_code = (tracking_code or "").strip() or None
        order = self._orders.update(order)
        logger.info("Order {} set to {}", order_id, new_status)
        return order

    def dashboard(self) -> dict[str, Any]:
        by_method = self._orders.revenue_by_payment_method()
        return {
            "total_products": self._products.count(include_deleted=True),
            "total_orders": self._orders.count(),
            "total_users": self._users.count(),
            "recent_orders": self._views(self._orders.list_all(limit=5), with_user=True),
            "revenue": round(sum(by_method.values()), 2),
            "revenue_by_payment_method": by_method,
        }

    # --- settlement ---

    def mark_paid(self, order_id: str, method: str | None) -> bool:
        """Mark a payable order PAID and take its items out of stock.

        Returns False (and changes nothing) when the order is unknown or already
        past the payable states. ``method=None`` keeps the recorded method.
        """
        order = self._orders.get(order_id)
        if order is None:
            logger.warning("mark_paid: order {} not found", order_id)
            return False
        if order.status not in PAYABLE_STATUSES:
            logger.info("mark_paid: order {} already {}", order_id, order.status)
            return False

        order.status = OrderStatus.PAID
        if method:
            order.payment_method = method
        self._orders.update(order)

        for item in self._orders.items_for(order_id):
            self._decrement_stock(item)

        logger.info("Order {} marked paid via {}", order_id, order.payment_method)
        return True

    def _decrement_stock(self, item: OrderItem) -> None:
        variants = self._products.list_variants(item.product_id)
        if variants:
            if not (item.size or item.color):
                return
            variant = next((v for v in variants if v.matches(item.size, item.color)), None)
            if variant is None:
                logger.warning(
                    "No variant {}/{} for product {}; stock unchanged",
                    item.size,
                    item.color,
                    item.product_id,
                )
                return
            self._products.set_variant_stock(variant.id, max(variant.stock - item.quantity, 0))
            return

        product = self._products.get(item.product_id)
        if product is not None:
            self._products.set_product_stock(product.id, max(product.stock - item.quantity, 0))

    def record_stripe_payment(self, order_id: str, payment_id: str | None) -> None:
        order = self._orders.get(order_id)
        if order is None or not payment_id:
            return
        order.stripe_payment_id = payment_id
        self._orders.update(order)

    def set_paypal_order_id(self, order_id: str, paypal_order_id: str) -> None:
        order = self._orders.get(order_id)
        if order is None:
            raise NotFoundError("Order not found")
        order.paypal_order_id = paypal_order_id
        self._orders.update(order)

    def resolve_paypal_order(self, candidates: list[str | None]) -> Order | None:
        """Find the local order from ids carried by a PayPal event.

        Candidates are tried as local order ids first, then as stored PayPal order ids.
        """
        for candidate in filter(None, candidates):
            order = self._orders.get(candidate)
            if order is not None:
                return order
        for candidate in filter(None, candidates):
            order = self._orders.get_by_paypal_order_id(candidate)
            if order is not None:
                return order
        return None

    def add_payment_instructions(
        self, order_id: str, instructions: dict[str, Any], *, method: str
    ) -> Order:
        """Append instructions (e.g. a Multibanco reference) and mark the order PROCESSING."""
        order = self._orders.get(order_id)
        if order is None:
            raise NotFoundError("Order not found")
        order.payment_instructions = [*(order.payment_instructions or []), instructions]
        if order.status in PAYABLE_STATUSES:
            order.status = OrderStatus.PROCESSING
        order.payment_method = method
        order = self._orders.update(order)
        logger.info("Stored {} payment instructions for order {}", method, order_id)
        return order
