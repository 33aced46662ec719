"""Cart item database table model."""

from sqlmodel import Field

from src.storefront.entities.core._base import EntityTable


class CartItemTable(EntityTable, table=True):
    user_id: str = Field(foreign_key="usertable.id", index=True)
    product_id: str = Field(foreign_key="producttable.id", index=True)
    size: str | None = None
    color: str | None = None
    quantity: int = Field(default=1)
