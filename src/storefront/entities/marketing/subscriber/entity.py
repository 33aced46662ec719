"""Entity: NewsletterSubscriber."""

from pydantic import Field

from src.storefront.entities.core._base import Entity


class NewsletterSubscriber(Entity):
    email: str = Field(min_length=3)
    source: str = "website"
    welcome_sent: bool = False
