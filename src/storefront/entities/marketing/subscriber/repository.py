from sqlalchemy import func
from sqlmodel import Session, select

from src.storefront.entities.core._base import utcnow
from src.storefront.entities.marketing.subscriber.entity import NewsletterSubscriber
from src.storefront.entities.marketing.subscriber.table import (
    NewsletterSubscriberTable,
)


class NewsletterSubscriberRepository:
    """Data-access layer for newsletter subscribers."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def get_by_email(self, email: str) -> NewsletterSubscriber | None:
        statement = select(NewsletterSubscriberTable).where(
            NewsletterSubscriberTable.email == email.strip().lower()
        )
        row = self._session.exec(statement).first()
        if row is None:
            return None
        return NewsletterSubscriber.model_validate(row, from_attributes=True)

    def count(self) -> int:
        return self._session.exec(
            select(func.count()).select_from(NewsletterSubscriberTable)
        ).one()

    def add(self, email: str, source: str = "website") -> tuple[NewsletterSubscriber, bool]:
        """Store ``email`` once. Returns the subscriber and whether it was new."""
        existing = self.get_by_email(email)
        if existing is not None:
            return existing, False

        row = NewsletterSubscriberTable(email=email.strip().lower(), source=source)
        self._session.add(row)
        self._session.flush()
        self._session.refresh(row)
        return NewsletterSubscriber.model_validate(row, from_attributes=True), True

    def mark_welcome_sent(self, subscriber_id: str) -> None:
        row = self._session.get(NewsletterSubscriberTable, subscriber_id)
        if row is None:
            raise ValueError(f"Subscriber with id {subscriber_id} not found")
        row.welcome_sent = True
        row.updated_at = utcnow()
        self._session.add(row)
        self._session.flush()
