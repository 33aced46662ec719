"""Season and size database table models."""

from sqlmodel import Field

from src.storefront.entities.core._base import EntityTable


class SeasonTable(EntityTable, table=True):
    name: str = Field(unique=True, index=True)


class SizeTable(EntityTable, table=True):
    name: str = Field(unique=True, index=True)
    order: int = Field(default=0)
