from sqlmodel import Session, col, select

from src.storefront.entities.sales.favorite.entity import Favorite
from src.storefront.entities.sales.favorite.table import FavoriteTable


class FavoriteRepository:
    """Data-access layer for a user's favorite products."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def get(self, user_id: str, product_id: str) -> Favorite | None:
        statement = select(FavoriteTable).where(
            FavoriteTable.user_id == user_id,
            FavoriteTable.product_id == product_id,
        )
        row = self._session.exec(statement).first()
        if row is None:
            return None
        return Favorite.model_validate(row, from_attributes=True)

    def list_for_user(self, user_id: str) -> list[Favorite]:
        statement = (
            select(FavoriteTable)
            .where(FavoriteTable.user_id == user_id)
            .order_by(col(FavoriteTable.created_at).desc())
        )
        rows = self._session.exec(statement).all()
        return [Favorite.model_validate(row, from_attributes=True) for row in rows]

    def create(self, favorite: Favorite) -> Favorite:
        row = FavoriteTable(**favorite.model_dump())
        self._session.add(row)
        self._session.flush()
        self._session.refresh(row)
        return Favorite.model_validate(row, from_attributes=True)

    def delete(self, user_id: str, product_id: str) -> bool:
        row = self._session.exec(
            select(FavoriteTable).where(
                FavoriteTable.user_id == user_id,
                FavoriteTable.product_id == product_id,
            )
        ).first()
        if row is None:
            return False
        self._session.delete(row)
        self._session.flush()
        return True

    def delete_for_user(self, user_id: str) -> int:
        rows = self._session.exec(
            select(FavoriteTable).where(FavoriteTable.user_id == user_id)
        ).all()
        for row in rows:
            self._session.delete(row)
        self._session.flush()
        return len(rows)

    def delete_for_product(self, product_id: str) -> int:
        rows = self._session.exec(
            select(FavoriteTable).where(FavoriteTable.product_id == product_id)
        ).all()
        for row in rows:
            self._session.delete(row)
        self._session.flush()
        return len(rows)
