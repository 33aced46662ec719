"""Session token and API client fixtures."""

from collections.abc import Callable, Generator
from typing import Any
from unittest.mock import AsyncMock, Mock

import pytest
from fastapi import Request, Response
from fastapi.testclient import TestClient
from sqlmodel import Session

from src.storefront.api.http.app import app
from src.storefront.api.http.app_data import ApplicationDependencies
from src.storefront.api.http.deps import get_db_session
from src.storefront.api.http.middleware.limiter import configure_rate_limiter
from src.storefront.core.services import (
    ClerkClient,
    CloudinaryService,
    DbSessionService,
    JWKSCacheInMemory,
    JwksService,
    JwtVerificationService,
    NewsletterService,
    PayPalService,
    RevalidationService,
    StripeService,
)
from src.storefront.runtime.config.config_data import ClerkConfig, ConfigData
from tests.utils import sign_token


@pytest.fixture
def jwks_service_fake(jwks_data: dict[str, Any]) -> JwksService:
    """JWKS service that never leaves the process."""

    class FakeJwksService(JwksService):
        async def fetch_jwks(self, jwks_uri: str) -> dict[str, Any]:
            return jwks_data

    return FakeJwksService(JWKSCacheInMemory())


@pytest.fixture
def jwt_verify_service(jwks_service_fake: JwksService) -> JwtVerificationService:
    return JwtVerificationService(jwks_service_fake)


@pytest.fixture
def make_token(signing_key: bytes, kid_for_jwt: str, issuer: str) -> Callable[..., str]:
    def _make(subject: str, **claims: Any) -> str:
        return sign_token(signing_key, kid_for_jwt, issuer, subject, **claims)

    return _make


@pytest.fixture
def auth_headers(make_token: Callable[..., str]) -> Callable[..., dict[str, str]]:
    def _headers(subject: str, **claims: Any) -> dict[str, str]:
        return {"Authorization": f"Bearer {make_token(subject, **claims)}"}

    return _headers


@pytest.fixture
def customer_headers(customer, auth_headers) -> dict[str, str]:
    return auth_headers(customer.clerk_id)


@pytest.fixture
def admin_headers(admin, auth_headers) -> dict[str, str]:
    return auth_headers(admin.clerk_id)


@pytest.fixture
def app_deps(jwks_service_fake: JwksService) -> ApplicationDependencies:
    """Application dependencies with every external provider mocked."""
    revalidation = Mock(spec=RevalidationService)
    revalidation.revalidate = AsyncMock(return_value=True)
    return ApplicationDependencies(
        jwks_cache=JWKSCacheInMemory(),
        jwks_service=jwks_service_fake,
        jwt_verify_service=JwtVerificationService(jwks_service_fake),
        database_service=Mock(spec=DbSessionService),
        clerk_client=ClerkClient(ClerkConfig()),
        cloudinary_service=Mock(spec=CloudinaryService),
        stripe_service=Mock(spec=StripeService),
        paypal_service=Mock(spec=PayPalService),
        newsletter_service=Mock(spec=NewsletterService),
        revalidation_service=revalidation,
    )


@pytest.fixture
def client(
    app_config: ConfigData,
    session: Session,
    app_deps: ApplicationDependencies,
) -> Generator[TestClient]:
    """Test client bound to the in-memory database and mocked providers.

    The lifespan is not started, so nothing reaches the network.
    """

    def override_get_db_session():
        yield session

    async def _no_limit(request: Request, response: Response) -> None:
        return None

    configure_rate_limiter(limiter_factory=lambda *_a, **_k: _no_limit)
    app.dependency_overrides[get_db_session] = override_get_db_session
    app.state.app_dependencies = app_deps

    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
