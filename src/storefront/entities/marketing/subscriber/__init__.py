"""Entity package: NewsletterSubscriber."""

from .entity import NewsletterSubscriber
from .repository import NewsletterSubscriberRepository
from .table import NewsletterSubscriberTable

__all__ = [
    "NewsletterSubscriber",
    "NewsletterSubscriberRepository",
    "NewsletterSubscriberTable",
]
