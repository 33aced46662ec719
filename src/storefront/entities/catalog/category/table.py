"""Category database table model."""

from sqlmodel import Field

from src.storefront.entities.core._base import EntityTable


class CategoryTable(EntityTable, table=True):
    """Database persistence model for categories."""

    name: str = Field(unique=True, index=True)
    slug: str = Field(unique=True, index=True)
    description: str | None = None
    image: str | None = None
    is_active: bool = Field(default=True)
    order: int = Field(default=0, index=True)
    parent_id: str | None = Field(
        default=None, foreign_key="categorytable.id", index=True
    )
