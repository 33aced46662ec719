from sqlalchemy import func
from sqlmodel import Session, col, select

from src.storefront.entities.core._base import utcnow
from src.storefront.entities.sales.order.entity import (
    SETTLED_STATUSES,
    Order,
    OrderItem,
)
from src.storefront.entities.sales.order.table import OrderItemTable, OrderTable


class OrderRepository:
    """Data-access layer for orders and their line items."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def get(self, order_id: str) -> Order | None:
        row = self._session.get(OrderTable, order_id)
        if row is None:
            return None
        return Order.model_validate(row, from_attributes=True)

    def get_by_paypal_order_id(self, paypal_order_id: str) -> Order | None:
        statement = select(OrderTable).where(
            OrderTable.paypal_order_id == paypal_order_id
        )
        row = self._session.exec(statement).first()
        if row is None:
            return None
        return Order.model_validate(row, from_attributes=True)

    def list_for_user(self, user_id: str) -> list[Order]:
        statement = (
            select(OrderTable)
            .where(OrderTable.user_id == user_id)
            .order_by(col(OrderTable.created_at).desc())
        )
        rows = self._session.exec(statement).all()
        return [Order.model_validate(row, from_attributes=True) for row in rows]

    def list_all(self, *, status: str | None = None, limit: int | None = None) -> list[Order]:
        statement = select(OrderTable).order_by(col(OrderTable.created_at).desc())
        if status:
            statement = statement.where(OrderTable.status == status)
        if limit:
            statement = statement.limit(limit)
        rows = self._session.exec(statement).all()
        return [Order.model_validate(row, from_attributes=True) for row in rows]

    def create(self, order: Order, items: list[OrderItem]) -> Order:
        """Insert an order and its items; the caller owns the transaction."""
        row = OrderTable(**order.model_dump())
        self._session.add(row)
        self._session.flush()
        for item in items:
            item_row = OrderItemTable(**item.model_dump())
            item_row.order_id = row.id
            self._session.add(item_row)
        self._session.flush()
        self._session.refresh(row)
        return Order.model_validate(row, from_attributes=True)

    def update(self, order: Order) -> Order:
        row = self._session.get(OrderTable, order.id)
        if row is None:
            raise ValueError(f"Order with id {order.id} not found")

        for field, value in order.model_dump(exclude={"id", "created_at"}).items():
            setattr(row, field, value)
        row.updated_at = utcnow()

        self._session.add(row)
        self._session.flush()
        self._session.refresh(row)
        return Order.model_validate(row, from_attributes=True)

    def items_for(self, order_id: str) -> list[OrderItem]:
        statement = (
            select(OrderItemTable)
            .where(OrderItemTable.order_id == order_id)
            .order_by(col(OrderItemTable.created_at))
        )
        rows = self._session.exec(statement).all()
        return [OrderItem.model_validate(row, from_attributes=True) for row in rows]

    def items_for_orders(self, order_ids: list[str]) -> dict[str, list[OrderItem]]:
        grouped: dict[str, list[OrderItem]] = {order_id: [] for order_id in order_ids}
        if not order_ids:
            return grouped
        statement = (
            select(OrderItemTable)
            .where(col(OrderItemTable.order_id).in_(order_ids))
            .order_by(col(OrderItemTable.created_at))
        )
        for row in self._session.exec(statement).all():
            grouped[row.order_id].append(OrderItem.model_validate(row, from_attributes=True))
        return grouped

    def item_statuses_for_product(self, product_id: str) -> list[str]:
        """Status of the order behind every line item referencing ``product_id``."""
        statement = (
            select(OrderTable.status)
            .join(OrderItemTable, col(OrderItemTable.order_id) == col(OrderTable.id))
            .where(OrderItemTable.product_id == product_id)
        )
        return list(self._session.exec(statement).all())

    def count_items_by_product(self, product_ids: list[str]) -> dict[str, int]:
        if not product_ids:
            return {}
        statement = (
            select(OrderItemTable.product_id, func.count(OrderItemTable.id))
            .where(col(OrderItemTable.product_id).in_(product_ids))
            .group_by(OrderItemTable.product_id)
        )
        return {product_id: count for product_id, count in self._session.exec(statement).all()}

    def units_sold_by_product(self) -> dict[str, int]:
        statement = select(
            OrderItemTable.product_id, func.sum(OrderItemTable.quantity)
        ).group_by(OrderItemTable.product_id)
        return {product_id: int(total or 0) for product_id, total in self._session.exec(statement).all()}

    def count_by_user(self) -> dict[str, int]:
        statement = (
            select(OrderTable.user_id, func.count(OrderTable.id))
            .where(col(OrderTable.user_id).is_not(None))
            .group_by(OrderTable.user_id)
        )
        return {user_id: count for user_id, count in self._session.exec(statement).all()}

    def count(self) -> int:
        return self._session.exec(select(func.count()).select_from(OrderTable)).one()

    def revenue(self) -> float:
        statement = select(func.coalesce(func.sum(OrderTable.total), 0)).where(
            col(OrderTable.status).in_([status.value for status in SETTLED_STATUSES])
        )
        return round(float(self._session.exec(statement).one()), 2)

    def revenue_by_payment_method(self) -> dict[str, float]:
        statement = (
            select(OrderTable.payment_method, func.sum(OrderTable.total))
            .where(col(OrderTable.status).in_([status.value for status in SETTLED_STATUSES]))
            .group_by(OrderTable.payment_method)
        )
        return {
            method or "unknown": round(float(total or 0), 2)
            for method, total in self._session.exec(statement).all()
        }

    def detach_user(self, user_id: str) -> int:
        """Keep a deleted user's orders but drop the link to the account."""
        rows = self._session.exec(
            select(OrderTable).where(OrderTable.user_id == user_id)
        ).all()
        for row in rows:
            row.user_id = None
            self._session.add(row)
        self._session.flush()
        return len(rows)
