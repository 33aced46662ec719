from sqlalchemy import func
from sqlmodel import Session, col, select

from src.storefront.entities.catalog.attribute.entity import Season, Size
from src.storefront.entities.catalog.attribute.table import SeasonTable, SizeTable


class SeasonRepository:
    """Data-access layer for seasons."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def list_all(self) -> list[Season]:
        rows = self._session.exec(select(SeasonTable).order_by(col(SeasonTable.name))).all()
        return [Season.model_validate(row, from_attributes=True) for row in rows]

    def get_by_name(self, name: str) -> Season | None:
        row = self._session.exec(
            select(SeasonTable).where(func.lower(SeasonTable.name) == name.lower())
        ).first()
        return None if row is None else Season.model_validate(row, from_attributes=True)

    def create(self, season: Season) -> Season:
        row = SeasonTable(**season.model_dump())
        self._session.add(row)
        self._session.flush()
        self._session.refresh(row)
        return Season.model_validate(row, from_attributes=True)

    def delete_by_name(self, name: str) -> bool:
        row = self._session.exec(select(SeasonTable).where(SeasonTable.name == name)).first()
        if row is None:
            return False
        self._session.delete(row)
        self._session.flush()
        return True


class SizeRepository:
    """Data-access layer for sizes."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def list_all(self) -> list[Size]:
        rows = self._session.exec(
            select(SizeTable).order_by(col(SizeTable.order), col(SizeTable.name))
        ).all()
        return [Size.model_validate(row, from_attributes=True) for row in rows]

    def get_by_name(self, name: str) -> Size | None:
        row = self._session.exec(select(SizeTable).where(SizeTable.name == name)).first()
        return None if row is None else Size.model_validate(row, from_attributes=True)

    def max_order(self) -> int:
        return self._session.exec(select(func.max(SizeTable.order))).one() or 0

    def create(self, size: Size) -> Size:
        row = SizeTable(**size.model_dump())
        self._session.add(row)
        self._session.flush()
        self._session.refresh(row)
        return Size.model_validate(row, from_attributes=True)

    def delete_by_name(self, name: str) -> bool:
        row = self._session.exec(select(SizeTable).where(SizeTable.name == name)).first()
        if row is None:
            return False
        self._session.delete(row)
        self._session.flush()
        return True
