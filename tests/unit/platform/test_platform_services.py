"""Unit tests for token verification, users, webhooks, email, revalidation and rate limiting."""

import base64
import json
from datetime import datetime, timezone

import httpx
import pytest
import resend
from fastapi import HTTPException, Response
from sqlmodel import Session
from svix.webhooks import Webhook

from src.storefront.api.http.middleware.limiter import DefaultLocalRateLimiter
from src.storefront.core.errors import (
    ForbiddenError,
    NotConfiguredError,
    ValidationFailed,
)
from src.storefront.core.models.claims import TokenClaims
from src.storefront.core.services import (
    NewsletterService,
    RevalidationService,
    UserManagementService,
)
from src.storefront.core.services.user.clerk_client import verify_clerk_webhook
from src.storefront.entities.core.user import User, UserRepository, UserRole
from src.storefront.entities.marketing.subscriber import NewsletterSubscriberRepository
from src.storefront.entities.sales.favorite import Favorite, FavoriteRepository
from src.storefront.entities.sales.order import Order, OrderItem, OrderRepository
from src.storefront.runtime.config.config_data import FrontendConfig, ResendConfig
from tests.utils import sign_token

CLERK_WEBHOOK_SECRET = "whsec_" + base64.b64encode(b"clerk-webhook-secret-bytes").decode()


def claims_for(subject: str, **extra) -> TokenClaims:
    return TokenClaims(
        issuer="https://clerk.storefront.test",
        subject=subject,
        expires_at=2_000_000_000,
        issued_at=1_700_000_000,
        **extra,
    )


class TestJwtVerification:
    """Test Clerk session token checks."""

    async def test_valid_token(self, app_config, jwt_verify_service, make_token):
        """A token signed with the published key yields its claims."""
        token = make_token("user_123", email="ana@example.com")

        claims = await jwt_verify_service.verify_jwt(token)

        assert claims.clerk_id == "user_123"
        assert claims.email == "ana@example.com"

    async def test_wrong_issuer(self, app_config, jwt_verify_service, signing_key, kid_for_jwt):
        """Tokens from another issuer are rejected."""
        token = sign_token(signing_key, kid_for_jwt, "https://evil.test", "user_123")

        with pytest.raises(HTTPException) as exc_info:
            await jwt_verify_service.verify_jwt(token)
        assert exc_info.value.status_code == 401

    async def test_unknown_authorized_party(self, app_config, jwt_verify_service, make_token):
        """Tokens minted for another origin are rejected."""
        token = make_token("user_123", azp="https://other-site.test")

        with pytest.raises(HTTPException, match="azp"):
            await jwt_verify_service.verify_jwt(token)

    async def test_bad_signature(self, app_config, jwt_verify_service, kid_for_jwt, issuer):
        """Tokens signed with another key are rejected."""
        token = sign_token(b"another-key-another-key-another-key!", kid_for_jwt, issuer, "u")

        with pytest.raises(HTTPException) as exc_info:
            await jwt_verify_service.verify_jwt(token)
        assert exc_info.value.status_code == 401


class TestUserProvisioning:
    """Test just-in-time user creation from session tokens."""

    async def test_creates_user_on_first_request(self, session: Session):
        """An unknown subject becomes a local user with the token's profile."""
        service = UserManagementService(session)

        user = await service.provision_user_from_claims(
            claims_for("user_new", email="nova@example.com", given_name="Nova", family_name="Lima")
        )

        assert user.clerk_id == "user_new"
        assert user.name == "Nova Lima"
        assert user.role == UserRole.USER

    async def test_returns_existing_user(self, session: Session, customer):
        """Known subjects are returned unchanged."""
        user = await UserManagementService(session).provision_user_from_claims(
            claims_for(customer.clerk_id, email="changed@example.com")
        )

        assert user.id == customer.id
        assert user.email == customer.email

    async def test_relinks_by_email(self, session: Session, customer):
        """A recreated Clerk account keeps the local row with the same email."""
        user = await UserManagementService(session).provision_user_from_claims(
            claims_for("user_recreated", email=customer.email)
        )

        assert user.id == customer.id
        assert user.clerk_id == "user_recreated"


class TestRoles:
    """Test role management."""

    def test_first_admin_can_be_bootstrapped(self, session: Session, customer):
        """While no admin exists anyone may promote."""
        service = UserManagementService(session)

        updated = service.set_role(customer, customer.clerk_id, "ADMIN")

        assert updated.is_admin

    def test_non_admin_cannot_promote_once_admin_exists(
        self, session: Session, customer, admin
    ):
        """Role changes are admin-only after the first admin."""
        with pytest.raises(ForbiddenError):
            UserManagementService(session).set_role(customer, customer.clerk_id, "ADMIN")

    def test_unknown_role_is_refused(self, session: Session, admin, customer):
        """Only known roles are accepted."""
        with pytest.raises(ValidationFailed):
            UserManagementService(session).set_role(admin, customer.clerk_id, "OWNER")


class TestClerkWebhook:
    """Test Clerk webhook verification and handling."""

    def _signed(self, event: dict) -> tuple[bytes, dict[str, str]]:
        payload = json.dumps(event)
        timestamp = datetime.now(tz=timezone.utc)
        signature = Webhook(CLERK_WEBHOOK_SECRET).sign("msg_1", timestamp, payload)
        headers = {
            "svix-id": "msg_1",
            "svix-timestamp": str(int(timestamp.timestamp())),
            "svix-signature": signature,
        }
        return payload.encode(), headers

    def test_verifies_signed_delivery(self):
        """A correctly signed delivery is decoded."""
        payload, headers = self._signed({"type": "user.created", "data": {"id": "user_1"}})

        event = verify_clerk_webhook(CLERK_WEBHOOK_SECRET, payload, headers)

        assert event["data"]["id"] == "user_1"

    def test_rejects_tampered_delivery(self):
        """Changing the body breaks the signature."""
        _, headers = self._signed({"type": "user.created", "data": {"id": "user_1"}})

        with pytest.raises(ValidationFailed, match="Invalid webhook signature"):
            verify_clerk_webhook(CLERK_WEBHOOK_SECRET, b'{"type": "user.deleted"}', headers)

    def test_missing_headers_and_secret(self):
        """Deliveries need svix headers and a configured secret."""
        with pytest.raises(ValidationFailed, match="Missing svix headers"):
            verify_clerk_webhook(CLERK_WEBHOOK_SECRET, b"{}", {})
        with pytest.raises(NotConfiguredError):
            verify_clerk_webhook(None, b"{}", {})

    def test_user_created_syncs_profile(self, session: Session):
        """user.created stores the Clerk profile."""
        action = UserManagementService(session).handle_webhook_event(
            {
                "type": "user.created",
                "data": {
                    "id": "user_hook",
                    "email_addresses": [{"email_address": "hook@example.com"}],
                    "first_name": "Rita",
                    "last_name": "Costa",
                },
            }
        )

        assert action == "synced"
        stored = UserRepository(session).get_by_clerk_id("user_hook")
        assert (stored.email, stored.name) == ("hook@example.com", "Rita Costa")

    def test_user_deleted_keeps_orders(self, session: Session, customer, product):
        """Deleting a user removes favorites and detaches orders."""
        FavoriteRepository(session).create(Favorite(user_id=customer.id, product_id=product.id))
        order = OrderRepository(session).create(
            Order(user_id=customer.id, subtotal=40, total=40),
            [OrderItem(order_id="", product_id=product.id, quantity=1, price=40)],
        )

        action = UserManagementService(session).handle_webhook_event(
            {"type": "user.deleted", "data": {"id": customer.clerk_id}}
        )

        assert action == "deleted"
        assert UserRepository(session).get_by_clerk_id(customer.clerk_id) is None
        assert FavoriteRepository(session).list_for_user(customer.id) == []
        assert OrderRepository(session).get(order.id).user_id is None

    def test_unknown_event_is_ignored(self, session: Session):
        """Other event types are acknowledged without changes."""
        action = UserManagementService(session).handle_webhook_event(
            {"type": "session.created", "data": {"id": "sess_1"}}
        )
        assert action == "ignored"


class TestNewsletter:
    """Test newsletter subscriptions."""

    def test_invalid_email(self, session: Session):
        """Malformed addresses are rejected."""
        service = NewsletterService(ResendConfig(), "development")
        with pytest.raises(ValidationFailed):
            service.subscribe(session, "not-an-email")

    def test_stores_locally_without_resend(self, session: Session):
        """Without Resend outside production the subscriber is only stored."""
        service = NewsletterService(ResendConfig(), "development")

        result = service.subscribe(session, " Ana@Example.com ")

        assert result == {"ok": True, "stored": "local"}
        assert NewsletterSubscriberRepository(session).get_by_email("ana@example.com")

    def test_production_requires_resend(self, session: Session):
        """Production refuses subscriptions it cannot confirm."""
        service = NewsletterService(ResendConfig(), "production")
        with pytest.raises(NotConfiguredError):
            service.subscribe(session, "ana@example.com")

    def test_welcome_email_sent_once(self, session: Session, monkeypatch: pytest.MonkeyPatch):
        """Subscribing twice sends a single welcome email."""
        sent: list[dict] = []
        monkeypatch.setattr(
            resend.Emails, "send", lambda params: sent.append(params) or {"id": "em_1"}
        )
        service = NewsletterService(ResendConfig(api_key="re_test"), "production")

        assert service.subscribe(session, "ana@example.com") == {"ok": True}
        service.subscribe(session, "ana@example.com")

        assert len(sent) == 1
        assert sent[0]["to"] == ["ana@example.com"]


class TestRevalidation:
    """Test the frontend cache hook."""

    async def test_posts_unique_paths_with_secret(self):
        """Paths are de-duplicated and the secret is sent as a header."""
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"revalidated": True})

        service = RevalidationService(
            FrontendConfig(revalidate_url="https://shop.test/api/revalidate", revalidate_secret="s3"),
            transport=httpx.MockTransport(handler),
        )

        assert await service.revalidate(["/products", "/products", ""]) is True
        assert json.loads(seen[0].content) == {"paths": ["/products"]}
        assert seen[0].headers["x-revalidate-secret"] == "s3"

    async def test_failure_is_reported_not_raised(self):
        """Errors from the frontend are swallowed into False."""
        service = RevalidationService(
            FrontendConfig(revalidate_url="https://shop.test/api/revalidate"),
            transport=httpx.MockTransport(lambda request: httpx.Response(500)),
        )
        assert await service.revalidate(["/"]) is False

    async def test_malformed_url_is_reported_not_raised(self):
        """A hook URL httpx cannot parse is logged and reported as False."""
        sent: list[httpx.Request] = []
        service = RevalidationService(
            FrontendConfig(revalidate_url="https://shop.test/\x00revalidate"),
            transport=httpx.MockTransport(lambda request: sent.append(request) or httpx.Response(200)),
        )

        assert await service.revalidate(["/"]) is False
        assert sent == []

    async def test_disabled_without_url(self):
        """Nothing is sent when no hook is configured."""
        assert await RevalidationService(FrontendConfig()).revalidate(["/"]) is False


class TestLocalRateLimiter:
    """Test the in-memory sliding window."""

    async def test_blocks_after_quota(self, request_factory):
        """The request after the quota is refused with Retry-After."""
        limiter = DefaultLocalRateLimiter(2, 60_000, per_endpoint=False, per_method=False)
        request = request_factory()

        await limiter(request, Response())
        await limiter(request, Response())
        with pytest.raises(HTTPException) as exc_info:
            await limiter(request, Response())

        assert exc_info.value.status_code == 429
        assert "Retry-After" in exc_info.value.headers

    async def test_clients_are_counted_separately(self, request_factory):
        """Each client address has its own quota."""
        limiter = DefaultLocalRateLimiter(1, 60_000, per_endpoint=False, per_method=False)

        await limiter(request_factory(client="10.0.0.1"), Response())
        await limiter(request_factory(client="10.0.0.2"), Response())

    async def test_forwarded_for_header_does_not_reset_quota(self, request_factory):
        """Rotating X-Forwarded-For from one peer shares that peer's quota."""
        limiter = DefaultLocalRateLimiter(1, 60_000, per_endpoint=True, per_method=True)

        await limiter(
            request_factory(client="10.0.0.9", headers={"X-Forwarded-For": "1.1.1.1"}),
            Response(),
        )
        with pytest.raises(HTTPException) as exc_info:
            await limiter(
                request_factory(client="10.0.0.9", headers={"X-Forwarded-For": "2.2.2.2"}),
                Response(),
            )

        assert exc_info.value.status_code == 429
