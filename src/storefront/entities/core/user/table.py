"""User database table model."""

from sqlmodel import Field

from src.storefront.entities.core._base import EntityTable


class UserTable(EntityTable, table=True):
    """Database persistence model for users."""

    clerk_id: str = Field(unique=True, index=True)
    email: str | None = Field(default=None, unique=True, index=True)
    name: str | None = None
    image_url: str | None = None
    role: str = Field(default="USER", index=True)
    address: str | None = None
