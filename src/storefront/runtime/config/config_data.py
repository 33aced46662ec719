"""Pydantic models for parsing the config.yaml configuration file.

This module contains Pydantic models that correspond to the structure of config.yaml.
These models handle validation and type conversion of the YAML configuration data.
"""

from __future__ import annotations

import os
from typing import Literal

from loguru import logger
from pydantic import BaseModel, Field, computed_field


class CORSConfig(BaseModel):
    """CORS configuration for the application."""

    origins: list[str] = Field(
        default=["http://localhost:3000", "http://localhost:3001"]
    )
    allow_credentials: bool = True
    allow_methods: list[str] = Field(
        default=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]
    )
    allow_headers: list[str] = Field(default=["*"])


class RateLimiterConfig(BaseModel):
    """Rate limiter configuration model."""

    requests: int = Field(
        default=100, description="Number of requests allowed per window"
    )
    window_ms: int = Field(default=60000, description="Time window in milliseconds")
    enabled: bool = Field(default=True, description="Enable rate limiting")
    per_endpoint: bool = Field(
        default=True, description="Apply rate limiting per endpoint"
    )
    per_method: bool = Field(
        default=True, description="Apply rate limiting per HTTP method"
    )


class JWTConfig(BaseModel):
    """JWT validation configuration."""

    allowed_algorithms: list[str] = Field(
        default_factory=lambda: ["RS256"],
        description="JWT algorithms allowed for token validation",
    )
    clock_skew: int = Field(default=60, description="Clock skew tolerance in seconds")


class ClerkConfig(BaseModel):
    """Clerk identity provider configuration."""

    issuer: str | None = Field(
        default=None, description="Clerk Frontend API URL, used as the token issuer"
    )
    jwks_uri: str | None = Field(
        default=None, description="JWKS endpoint for session tokens"
    )
    authorized_parties: list[str] = Field(
        default_factory=list,
        description="Allowed azp values (empty = skip the azp check)",
    )
    secret_key: str | None = Field(
        default=None, description="Backend API secret key"
    )
    api_url: str = Field(
        default="https://api.clerk.com/v1", description="Clerk Backend API base URL"
    )
    webhook_secret: str | None = Field(
        default=None, description="Svix signing secret for Clerk webhooks"
    )

    @property
    def is_configured(self) -> bool:
        return bool(self.issuer and self.jwks_uri)


class StripeConfig(BaseModel):
    """Stripe Checkout configuration."""

    secret_key: str | None = Field(default=None, description="Stripe secret API key")
    webhook_secret: str | None = Field(
        default=None, description="Signing secret for the Stripe webhook endpoint"
    )
    currency: str = Field(default="eur", description="Checkout currency")

    @property
    def is_configured(self) -> bool:
        return bool(self.secret_key)


class PayPalConfig(BaseModel):
    """PayPal REST API configuration."""

    environment: Literal["sandbox", "live"] = Field(
        default="sandbox", description="PayPal environment"
    )
    client_id: str | None = Field(default=None, description="REST app client id")
    client_secret: str | None = Field(
        default=None, description="REST app client secret"
    )
    webhook_id: str | None = Field(
        default=None, description="Webhook id used for signature verification"
    )
    currency: str = Field(default="EUR", description="Order currency")
    brand_name: str = Field(default="Storefront", description="Brand shown on PayPal")
    timeout_seconds: float = Field(default=15.0, description="HTTP timeout")

    @property
    def base_url(self) -> str:
        if self.environment == "live":
            return "https://api-m.paypal.com"
        return "https://api-m.sandbox.paypal.com"

    @property
    def is_configured(self) -> bool:
        return bool(self.client_id and self.client_secret)


class CloudinaryConfig(BaseModel):
    """Cloudinary media configuration."""

    cloud_name: str | None = Field(default=None, description="Cloudinary cloud name")
    api_key: str | None = Field(default=None, description="API key for signed calls")
    api_secret: str | None = Field(
        default=None, description="API secret for signed calls"
    )
    upload_preset: str | None = Field(
        default=None, description="Upload preset used for product images"
    )
    folder: str = Field(default="products", description="Upload folder")
    max_upload_mb: int = Field(default=10, description="Maximum upload size in MB")

    @property
    def is_configured(self) -> bool:
        return bool(self.cloud_name and self.upload_preset)

    @property
    def can_destroy(self) -> bool:
        return bool(self.cloud_name and self.api_key and self.api_secret)


class ResendConfig(BaseModel):
    """Resend email relay configuration."""

    api_key: str | None = Field(default=None, description="Resend API key")
    from_address: str = Field(
        default="Storefront <newsletter@example.com>",
        description="Sender used for newsletter mail",
    )
    welcome_subject: str = Field(
        default="Bem-vindo à newsletter", description="Subject of the welcome email"
    )

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)


class FrontendConfig(BaseModel):
    """Storefront frontend settings used for redirects and cache revalidation."""

    revalidate_url: str | None = Field(
        default=None, description="Endpoint that revalidates cached pages"
    )
    revalidate_secret: str | None = Field(
        default=None, description="Shared secret sent with revalidation calls"
    )
    timeout_seconds: float = Field(default=5.0, description="HTTP timeout")


class CategoryGroupConfig(BaseModel):
    """Named listing that gathers products from categories matching name patterns."""

    title: str = Field(description="Display name of the listing")
    patterns: list[str] = Field(
        default_factory=list, description="Case-insensitive category name fragments"
    )


class CatalogConfig(BaseModel):
    """Catalog listing configuration."""

    page_size: int = Field(default=12, description="Default page size for listings")
    search_page_size: int = Field(default=16, description="Default page size for search")
    max_page_size: int = Field(default=100, description="Upper bound for page size")
    low_stock_threshold: int = Field(
        default=3, description="Variant stock at or below which stock is reported low"
    )
    category_groups: dict[str, CategoryGroupConfig] = Field(
        default_factory=dict, description="Listings keyed by slug"
    )


class LoggingConfig(BaseModel):
    """Logging configuration model."""

    level: str = Field(default="INFO", description="Logging level")
    format: Literal["json", "plain"] = Field(default="json", description="Log format")
    file: str | None = Field(default="logs/app.log", description="Log file path")
    max_size_mb: int = Field(default=10, description="Maximum log file size in MB")
    backup_count: int = Field(
        default=5, description="Number of backup log files to keep"
    )


class DatabaseConfig(BaseModel):
    """Database configuration model."""

    url: str = Field(
        default="sqlite:///./storefront.db",
        description="Database connection URL",
    )
    pool_size: int = Field(default=20, description="Connection pool size")
    max_overflow: int = Field(default=10, description="Maximum pool overflow")
    pool_timeout: int = Field(default=30, description="Pool timeout in seconds")
    pool_recycle: int = Field(default=1800, description="Pool recycle time in seconds")
    password_env_var: str | None = Field(
        default=None,
        description="Environment variable name containing database password",
    )
    password_file: str | None = Field(
        default=None,
        description="Path to file containing database password",
    )

    @property
    def is_sqlite(self) -> bool:
        return self.url.startswith("sqlite")

    @computed_field
    @property
    def password(self) -> str | None:
        """Resolve the password from a secrets file or environment variable, if set."""
        if self.password_file:
            try:
                with open(self.password_file) as f:
                    return f.read().strip()
            except OSError as e:
                raise ValueError("Failed to read database password from file.") from e
        if self.password_env_var:
            password = os.getenv(self.password_env_var)
            if not password:
                raise ValueError(
                    f"Environment variable {self.password_env_var} not set"
                )
            return password
        return None

    @computed_field
    @property
    def connection_string(self) -> str:
        """Construct the database connection string with password if provided."""
        from sqlalchemy.engine import make_url

        base_url = make_url(self.url)
        resolved_password = self.password
        if resolved_password is None:
            return self.url

        if base_url.password and base_url.password != resolved_password:
            logger.warning(
                "Database URL contains a password that differs from the configured secret; using the secret"
            )
        return base_url.set(password=resolved_password).render_as_string(
            hide_password=False
        )


class AppConfig(BaseModel):
    """Application configuration model."""

    environment: Literal["development", "production", "test"] = Field(
        default="development", description="Application environment"
    )
    host: str = Field(default="localhost", description="Application host")
    port: int = Field(default=8000, description="Application port")
    public_url: str = Field(
        default="http://localhost:3000",
        description="Public storefront URL used for payment redirects",
    )
    cors: CORSConfig = Field(
        default_factory=CORSConfig, description="CORS configuration"
    )

    @property
    def base_url(self) -> str:
        """Construct the base URL from host and port."""
        scheme = "https" if self.environment == "production" else "http"
        return f"{scheme}://{self.host}:{self.port}"


class ConfigData(BaseModel):
    """Root configuration model that matches the config.yaml structure."""

    app: AppConfig = Field(
        default_factory=AppConfig, description="Application configuration"
    )
    database: DatabaseConfig = Field(
        default_factory=DatabaseConfig, description="Database configuration"
    )
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig, description="Logging configuration"
    )
    rate_limiter: RateLimiterConfig = Field(
        default_factory=RateLimiterConfig, description="Rate limiter configuration"
    )
    jwt: JWTConfig = Field(
        default_factory=JWTConfig, description="JWT validation configuration"
    )
    clerk: ClerkConfig = Field(
        default_factory=ClerkConfig, description="Clerk configuration"
    )
    stripe: StripeConfig = Field(
        default_factory=StripeConfig, description="Stripe configuration"
    )
    paypal: PayPalConfig = Field(
        default_factory=PayPalConfig, description="PayPal configuration"
    )
    cloudinary: CloudinaryConfig = Field(
        default_factory=CloudinaryConfig, description="Cloudinary configuration"
    )
    resend: ResendConfig = Field(
        default_factory=ResendConfig, description="Resend configuration"
    )
    frontend: FrontendConfig = Field(
        default_factory=FrontendConfig, description="Frontend integration"
    )
    catalog: CatalogConfig = Field(
        default_factory=CatalogConfig, description="Catalog configuration"
    )
