from .newsletter_service import NewsletterService, normalize_email

__all__ = ["NewsletterService", "normalize_email"]
