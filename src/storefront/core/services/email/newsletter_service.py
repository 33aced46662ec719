"""Newsletter subscriptions and the welcome email sent through Resend."""

from typing import Any

import resend
from loguru import logger
from pydantic import EmailStr, TypeAdapter, ValidationError
from resend.exceptions import ResendError
from sqlmodel import Session

from src.storefront.core.errors import NotConfiguredError, ProviderError, ValidationFailed
from src.storefront.entities.marketing.subscriber import NewsletterSubscriberRepository
from src.storefront.runtime.config.config_data import ResendConfig

_email_adapter = TypeAdapter(EmailStr)

WELCOME_HTML = "<p>Olá! Obrigado por subscrever a nossa newsletter.</p>"


def normalize_email(value: str | None) -> str:
    try:
        return _email_adapter.validate_python((value or "").strip()).lower()
    except ValidationError as exc:
        raise ValidationFailed("A valid email is required") from exc


class NewsletterService:
    def __init__(self, config: ResendConfig, environment: str) -> None:
        self._config = config
        self._environment = environment

    @property
    def is_configured(self) -> bool:
        return self._config.is_configured

    def send_welcome(self, email: str) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "from": self._config.from_address,
            "to": [email],
            "subject": self._config.welcome_subject,
            "html": WELCOME_HTML,
        }
        resend.api_key = self._config.api_key
        try:
            response = resend.Emails.send(payload)
        except ResendError as exc:
            logger.error("Resend send failed: {}", exc)
            raise ProviderError("Failed to send welcome email") from exc
        return response

    def subscribe(
        self, session: Session, email: str | None, *, source: str = "website"
    ) -> dict[str, Any]:
        """Store the subscriber and send the welcome email when Resend is set up.

        Without Resend the subscription is only stored, which production refuses.
        """
        address = normalize_email(email)

        if not self.is_configured and self._environment == "production":
            raise NotConfiguredError("Server not configured")

        repo = NewsletterSubscriberRepository(session)
        subscriber, created = repo.add(address, source)
        if created:
            logger.info("New newsletter subscriber {}", subscriber.id)

        if not self.is_configured:
            return {"ok": True, "stored": "local"}

        if not subscriber.welcome_sent:
            self.send_welcome(address)
            repo.mark_welcome_sent(subscriber.id)
        return {"ok": True}
