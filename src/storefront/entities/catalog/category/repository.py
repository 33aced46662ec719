from sqlalchemy import func, or_
from sqlmodel import Session, col, select

from src.storefront.entities.catalog.category.entity import Category
from src.storefront.entities.catalog.category.table import CategoryTable
from src.storefront.entities.core._base import utcnow


class CategoryRepository:
    """Data-access layer for categories."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def _to_entity(self, row: CategoryTable) -> Category:
        return Category.model_validate(row, from_attributes=True)

    def get(self, category_id: str) -> Category | None:
        row = self._session.get(CategoryTable, category_id)
        return None if row is None else self._to_entity(row)

    def get_by_slug(self, slug: str) -> Category | None:
        row = self._session.exec(
            select(CategoryTable).where(CategoryTable.slug == slug)
        ).first()
        return None if row is None else self._to_entity(row)

    def get_by_name(self, name: str, *, exclude_id: str | None = None) -> Category | None:
        """Case-insensitive name lookup, optionally ignoring one category."""
        statement = select(CategoryTable).where(
            func.lower(CategoryTable.name) == name.strip().lower()
        )
        if exclude_id:
            statement = statement.where(CategoryTable.id != exclude_id)
        row = self._session.exec(statement).first()
        return None if row is None else self._to_entity(row)

    def slug_taken(self, slug: str, *, exclude_id: str | None = None) -> bool:
        statement = select(CategoryTable.id).where(CategoryTable.slug == slug)
        if exclude_id:
            statement = statement.where(CategoryTable.id != exclude_id)
        return self._session.exec(statement).first() is not None

    def list_all(self, *, active_only: bool = False) -> list[Category]:
        statement = select(CategoryTable).order_by(
            col(CategoryTable.order), col(CategoryTable.name)
        )
        if active_only:
            statement = statement.where(CategoryTable.is_active == True)  # noqa: E712
        return [self._to_entity(row) for row in self._session.exec(statement).all()]

    def list_children(self, parent_id: str) -> list[Category]:
        statement = (
            select(CategoryTable)
            .where(CategoryTable.parent_id == parent_id)
            .order_by(col(CategoryTable.name))
        )
        return [self._to_entity(row) for row in self._session.exec(statement).all()]

    def has_children(self, category_id: str) -> bool:
        statement = select(CategoryTable.id).where(
            CategoryTable.parent_id == category_id
        )
        return self._session.exec(statement).first() is not None

    def find_by_name_patterns(self, patterns: list[str]) -> list[Category]:
        if not patterns:
            return []
        conditions = [
            func.lower(CategoryTable.name).contains(pattern.lower())
            for pattern in patterns
        ]
        statement = select(CategoryTable).where(
            or_(*conditions)
        )
        return [self._to_entity(row) for row in self._session.exec(statement).all()]

    def max_order(self) -> int:
        value = self._session.exec(select(func.max(CategoryTable.order))).one()
        return value or 0

    def create(self, category: Category) -> Category:
        row = CategoryTable(**category.model_dump())
        self._session.add(row)
        self._session.flush()
        self._session.refresh(row)
        return self._to_entity(row)

    def update(self, category: Category) -> Category:
        row = self._session.get(CategoryTable, category.id)
        if row is None:
            raise ValueError(f"Category with id {category.id} not found")

        for field, value in category.model_dump(exclude={"id", "created_at"}).items():
            setattr(row, field, value)
        row.updated_at = utcnow()

        self._session.add(row)
        self._session.flush()
        self._session.refresh(row)
        return self._to_entity(row)

    def set_order(self, category_id: str, order: int) -> bool:
        row = self._session.get(CategoryTable, category_id)
        if row is None:
            return False
        row.order = order
        row.updated_at = utcnow()
        self._session.add(row)
        return True

    def shift_orders_after(self, order: int) -> None:
        """Close the gap left by a removed category."""
        rows = self._session.exec(
            select(CategoryTable).where(CategoryTable.order > order)
        ).all()
        for row in rows:
            row.order -= 1
            self._session.add(row)
        self._session.flush()

    def delete(self, category_id: str) -> bool:
        row = self._session.get(CategoryTable, category_id)
        if row is None:
            return False
        self._session.delete(row)
        self._session.flush()
        return True
