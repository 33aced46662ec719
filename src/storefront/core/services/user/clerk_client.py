"""Thin adapters over the Clerk Backend API and Clerk's svix-signed webhooks."""

import json
from typing import Any

import httpx
from loguru import logger
from svix.webhooks import Webhook, WebhookVerificationError

from src.storefront.core.errors import NotConfiguredError, ProviderError, ValidationFailed
from src.storefront.runtime.config.config_data import ClerkConfig

SVIX_HEADERS = ("svix-id", "svix-timestamp", "svix-signature")


def profile_from_clerk_user(data: dict[str, Any]) -> dict[str, str | None]:
    """Extract the fields stored locally from a Clerk user object.

    Webhook payloads and the Backend API use the same snake_case user shape.
    """
    addresses = data.get("email_addresses") or []
    email = addresses[0].get("email_address") if addresses else None
    name = f"{data.get('first_name') or ''} {data.get('last_name') or ''}".strip()
    return {
        "email": email or None,
        "name": name or None,
        "image_url": data.get("image_url") or None,
    }


class ClerkClient:
    """Fetches user profiles from the Clerk Backend API."""

    def __init__(self, config: ClerkConfig) -> None:
        self._config = config

    @property
    def enabled(self) -> bool:
        return bool(self._config.secret_key)

    async def get_user(self, clerk_id: str) -> dict[str, Any]:
        if not self.enabled:
            raise NotConfiguredError("Clerk secret key not configured")

        url = f"{self._config.api_url.rstrip('/')}/users/{clerk_id}"
        try:
            async with httpx.AsyncClient(timeout=10) as client:
                resp = await client.get(
                    url, headers={"Authorization": f"Bearer {self._config.secret_key}"}
                )
                resp.raise_for_status()
                return resp.json()
        except httpx.HTTPError as exc:
            logger.error("Clerk user lookup failed for {}: {}", clerk_id, exc)
            raise ProviderError("Failed to fetch user from Clerk") from exc


def verify_clerk_webhook(
    secret: str | None, payload: bytes, headers: dict[str, str]
) -> dict[str, Any]:
    """Verify a Clerk webhook delivery and return the decoded event."""
    if not secret:
        raise NotConfiguredError("Clerk webhook secret not configured")

    svix_headers = {name: headers.get(name) for name in SVIX_HEADERS}
    if not all(svix_headers.values()):
        raise ValidationFailed("Missing svix headers")

    try:
        Webhook(secret).verify(payload, svix_headers)
    except WebhookVerificationError as exc:
        logger.warning("Rejected Clerk webhook: {}", exc)
        raise ValidationFailed("Invalid webhook signature") from exc

    # svix 2.x verify() returns None
    try:
        event = json.loads(payload)
    except ValueError as exc:
        raise ValidationFailed("Invalid webhook payload") from exc
    if not isinstance(event, dict):
        raise ValidationFailed("Invalid webhook payload")
    return event
