"""Newsletter subscriber database table model."""

from sqlmodel import Field

from src.storefront.entities.core._base import EntityTable


class NewsletterSubscriberTable(EntityTable, table=True):
    email: str = Field(unique=True, index=True)
    source: str = Field(default="website")
    welcome_sent: bool = Field(default=False)
