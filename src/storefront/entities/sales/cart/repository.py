from sqlmodel import Session, col, select

from src.storefront.entities.core._base import utcnow
from src.storefront.entities.sales.cart.entity import CartItem, normalize_option
from src.storefront.entities.sales.cart.table import CartItemTable


class CartRepository:
    """Data-access layer for server-side cart lines."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def _find_row(
        self, user_id: str, product_id: str, size: str | None, color: str | None
    ) -> CartItemTable | None:
        statement = select(CartItemTable).where(
            CartItemTable.user_id == user_id,
            CartItemTable.product_id == product_id,
        )
        size, color = normalize_option(size), normalize_option(color)
        statement = statement.where(
            col(CartItemTable.size).is_(None) if size is None else CartItemTable.size == size
        )
        statement = statement.where(
            col(CartItemTable.color).is_(None) if color is None else CartItemTable.color == color
        )
        return self._session.exec(statement).first()

    def find(
        self, user_id: str, product_id: str, size: str | None, color: str | None
    ) -> CartItem | None:
        row = self._find_row(user_id, product_id, size, color)
        if row is None:
            return None
        return CartItem.model_validate(row, from_attributes=True)

    def list_for_user(self, user_id: str) -> list[CartItem]:
        statement = (
            select(CartItemTable)
            .where(CartItemTable.user_id == user_id)
            .order_by(col(CartItemTable.created_at))
        )
        rows = self._session.exec(statement).all()
        return [CartItem.model_validate(row, from_attributes=True) for row in rows]

    def add(self, item: CartItem) -> CartItem:
        """Insert the line, or add to the quantity of an existing line with the same key."""
        row = self._find_row(item.user_id, item.product_id, item.size, item.color)
        if row is None:
            row = CartItemTable(
                **item.model_dump(exclude={"size", "color"}),
                size=normalize_option(item.size),
                color=normalize_option(item.color),
            )
        else:
            row.quantity += item.quantity
            row.updated_at = utcnow()
        self._session.add(row)
        self._session.flush()
        self._session.refresh(row)
        return CartItem.model_validate(row, from_attributes=True)

    def set_quantity(
        self,
        user_id: str,
        product_id: str,
        size: str | None,
        color: str | None,
        quantity: int,
    ) -> CartItem | None:
        """Set a line's quantity; a non-positive quantity removes the line."""
        row = self._find_row(user_id, product_id, size, color)
        if row is None:
            return None
        if quantity <= 0:
            self._session.delete(row)
            self._session.flush()
            return None
        row.quantity = quantity
        row.updated_at = utcnow()
        self._session.add(row)
        self._session.flush()
        self._session.refresh(row)
        return CartItem.model_validate(row, from_attributes=True)

    def remove(
        self, user_id: str, product_id: str, size: str | None, color: str | None
    ) -> bool:
        row = self._find_row(user_id, product_id, size, color)
        if row is None:
            return False
        self._session.delete(row)
        self._session.flush()
        return True

    def clear(self, user_id: str) -> int:
        rows = self._session.exec(
            select(CartItemTable).where(CartItemTable.user_id == user_id)
        ).all()
        for row in rows:
            self._session.delete(row)
        self._session.flush()
        return len(rows)

    def delete_for_product(self, product_id: str) -> int:
        rows = self._session.exec(
            select(CartItemTable).where(CartItemTable.product_id == product_id)
        ).all()
        for row in rows:
            self._session.delete(row)
        self._session.flush()
        return len(rows)
