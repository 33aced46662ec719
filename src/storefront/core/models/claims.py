"""Verified session token claims."""

from typing import Any

from pydantic import BaseModel, Field


class TokenClaims(BaseModel):
    """Structured representation of a verified Clerk session token."""

    raw_token: str = Field(default="", description="Original JWT token")

    # Registered claims
    issuer: str = Field(description="Issuer (Clerk Frontend API URL)")
    subject: str = Field(description="Subject (Clerk user id)")
    authorized_party: str | None = Field(default=None, description="Authorized party (azp)")
    expires_at: int = Field(description="Expiration time")
    issued_at: int = Field(description="Issued at")
    not_before: int | None = Field(default=None, description="Not before")
    session_id: str | None = Field(default=None, description="Clerk session id (sid)")

    # Profile claims, present when the session token template adds them
    email: str | None = Field(default=None, description="Primary email address")
    name: str | None = Field(default=None, description="Full name")
    given_name: str | None = Field(default=None, description="First name")
    family_name: str | None = Field(default=None, description="Last name")
    image_url: str | None = Field(default=None, description="Avatar URL")

    all_claims: dict[str, Any] = Field(
        default_factory=dict, description="All claims (including custom claims)"
    )

    @property
    def clerk_id(self) -> str:
        return self.subject

    @property
    def display_name(self) -> str | None:
        if self.name:
            return self.name
        parts = [part for part in (self.given_name, self.family_name) if part]
        return " ".join(parts) or None
