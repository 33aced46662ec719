"""User domain entity."""

from enum import StrEnum

from pydantic import Field

from src.storefront.entities.core._base import Entity


class UserRole(StrEnum):
    USER = "USER"
    ADMIN = "ADMIN"


class User(Entity):
    """A shopper or administrator, mirrored from the identity provider.

    ``clerk_id`` is the identity provider's subject and the lookup key for
    authenticated requests; the local ``id`` is what other records reference.
    """

    clerk_id: str = Field(description="Identity provider user id")
    email: str | None = Field(default=None, description="Primary email address")
    name: str | None = Field(default=None, description="Display name")
    image_url: str | None = Field(default=None, description="Avatar URL")
    role: UserRole = Field(default=UserRole.USER, description="Authorization role")
    address: str | None = Field(default=None, description="Default shipping address")

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN
