from typing import Any

from loguru import logger
from sqlmodel import Session

from src.storefront.core.errors import ForbiddenError, NotFoundError, ValidationFailed
from src.storefront.core.models.claims import TokenClaims
from src.storefront.core.services.user.clerk_client import (
    ClerkClient,
    profile_from_clerk_user,
)
from src.storefront.entities.core.user.entity import User, UserRole
from src.storefront.entities.core.user.repository import UserRepository
from src.storefront.entities.sales.cart.repository import CartRepository
from src.storefront.entities.sales.favorite.repository import FavoriteRepository
from src.storefront.entities.sales.order.repository import OrderRepository


class UserManagementService:
    """Keeps local users in step with Clerk identities and manages roles."""

    def __init__(self, db_session: Session, clerk_client: ClerkClient | None = None):
        self._db_session = db_session
        self._clerk_client = clerk_client
        self._user_repo = UserRepository(db_session)

    async def provision_user_from_claims(self, claims: TokenClaims) -> User:
        """Return the local user for a verified token, creating it on first sight (JIT).

        When the token carries no email and the Clerk secret key is configured the
        profile is fetched from the Clerk Backend API.
        """
        clerk_id = claims.clerk_id
        if not clerk_id:
            raise ValidationFailed("Missing sub claim")

        user = self._user_repo.get_by_clerk_id(clerk_id)
        if user is not None:
            return user

        profile: dict[str, Any] = {
            "email": claims.email,
            "name": claims.display_name,
            "image_url": claims.image_url,
        }
        if not profile["email"] and self._clerk_client and self._clerk_client.enabled:
            clerk_user = await self._clerk_client.get_user(clerk_id)
            profile = profile_from_clerk_user(clerk_user)

        user = self._upsert(clerk_id, profile)
        logger.info("Provisioned user {} for clerk id {}", user.id, clerk_id)
        return user

    def _upsert(self, clerk_id: str, profile: dict[str, Any]) -> User:
        user = self._user_repo.get_by_clerk_id(clerk_id)
        email = profile.get("email")

        # An account recreated in Clerk keeps its local row through the email
        if user is None and email:
            user = self._user_repo.get_by_email(email)
            if user is not None:
                logger.info("Relinking user {} to clerk id {}", user.id, clerk_id)

        if user is None:
            return self._user_repo.create(
                User(
                    clerk_id=clerk_id,
                    email=email,
                    name=profile.get("name"),
                    image_url=profile.get("image_url"),
                )
            )

        user.clerk_id = clerk_id
        user.email = email or user.email
        user.name = profile.get("name") or user.name
        user.image_url = profile.get("image_url") or user.image_url
        return self._user_repo.update(user)

    def handle_webhook_event(self, event: dict[str, Any]) -> str:
        """Apply a verified Clerk webhook event. Returns the action taken."""
        event_type = event.get("type", "")
        data = event.get("data") or {}
        clerk_id = data.get("id")

        if event_type in ("user.created", "user.updated"):
            if not clerk_id:
                raise ValidationFailed("Webhook payload has no user id")
            user = self._upsert(clerk_id, profile_from_clerk_user(data))
            logger.info("Synced user {} from {}", user.id, event_type)
            return "synced"

        if event_type == "user.deleted":
            if clerk_id and self.delete_user(clerk_id):
                return "deleted"
            return "ignored"

        logger.info("Unhandled Clerk webhook event type: {}", event_type)
        return "ignored"

    def delete_user(self, clerk_id: str) -> bool:
        """Remove a user together with their favorites and cart; orders are kept."""
        user = self._user_repo.get_by_clerk_id(clerk_id)
        if user is None:
            return False

        FavoriteRepository(self._db_session).delete_for_user(user.id)
        CartRepository(self._db_session).clear(user.id)
        detached = OrderRepository(self._db_session).detach_user(user.id)
        self._user_repo.delete(user.id)
        logger.info("Deleted user {} ({} orders detached)", user.id, detached)
        return True

    def can_manage_roles(self, actor: User) -> bool:
        """Admins manage roles; anyone may do it while no admin exists yet."""
        return actor.is_admin or not self._user_repo.admin_exists()

    def set_role(self, actor: User, target_clerk_id: str, role: str) -> User:
        try:
            new_role = UserRole(role)
        except ValueError:
            raise ValidationFailed(f"Invalid role: {role}") from None

        if not self.can_manage_roles(actor):
            raise ForbiddenError("Access denied")

        target = self._user_repo.get_by_clerk_id(target_clerk_id)
        if target is None:
            raise NotFoundError("User not found")

        target.role = new_role
        updated = self._user_repo.update(target)
        logger.info("User {} set role of {} to {}", actor.id, updated.id, new_role)
        return updated

    def list_with_order_counts(self) -> list[tuple[User, int]]:
        counts = OrderRepository(self._db_session).count_by_user()
        return [(user, counts.get(user.id, 0)) for user in self._user_repo.list_all()]
