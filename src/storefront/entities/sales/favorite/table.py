"""Favorite database table model."""

from sqlalchemy import UniqueConstraint
from sqlmodel import Field

from src.storefront.entities.core._base import EntityTable


class FavoriteTable(EntityTable, table=True):
    __table_args__ = (UniqueConstraint("user_id", "product_id"),)

    user_id: str = Field(foreign_key="usertable.id", index=True)
    product_id: str = Field(foreign_key="producttable.id", index=True)
