"""FastAPI dependency implementations."""

from __future__ import annotations

from collections.abc import Iterator

from fastapi import Depends, HTTPException, Request
from sqlmodel import Session

from src.storefront.api.http.app_data import ApplicationDependencies
from src.storefront.core.services import (
    ClerkClient,
    CloudinaryService,
    JWKSCache,
    JwksService,
    JwtVerificationService,
    NewsletterService,
    PayPalService,
    RevalidationService,
    StripeService,
    UserManagementService,
)
from src.storefront.core.services.catalog import (
    AttributeService,
    CategoryService,
    ProductService,
)
from src.storefront.core.services.sales import (
    CartService,
    CouponService,
    FavoriteService,
    OrderService,
)
from src.storefront.entities.core.user import User
from src.storefront.runtime.context import get_config


def _app_deps(request: Request) -> ApplicationDependencies:
    return request.app.state.app_dependencies


def get_db_session(request: Request) -> Iterator[Session]:
    """Yield a database session; anything raised inside the request rolls it back.

    Handlers commit explicitly once their write succeeded.
    """
    session = _app_deps(request).database_service.get_session()
    try:
        yield session
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def get_jwks_cache(request: Request) -> JWKSCache:
    """Get the JWKS cache instance."""
    return _app_deps(request).jwks_cache


def get_jwks_service(request: Request) -> JwksService:
    """Get the JWKS service instance."""
    return _app_deps(request).jwks_service


def get_jwt_verify_service(request: Request) -> JwtVerificationService:
    """Get the JWT verification service instance."""
    return _app_deps(request).jwt_verify_service


def get_clerk_client(request: Request) -> ClerkClient:
    return _app_deps(request).clerk_client


def get_cloudinary_service(request: Request) -> CloudinaryService:
    return _app_deps(request).cloudinary_service


def get_stripe_service(request: Request) -> StripeService:
    return _app_deps(request).stripe_service


def get_paypal_service(request: Request) -> PayPalService:
    return _app_deps(request).paypal_service


def get_newsletter_service(request: Request) -> NewsletterService:
    return _app_deps(request).newsletter_service


def get_revalidation_service(request: Request) -> RevalidationService:
    return _app_deps(request).revalidation_service


def get_user_management_service(
    db: Session = Depends(get_db_session),
    clerk_client: ClerkClient = Depends(get_clerk_client),
) -> UserManagementService:
    """Get the User Management service instance."""
    return UserManagementService(db, clerk_client)


def get_product_service(
    db: Session = Depends(get_db_session),
    media: CloudinaryService = Depends(get_cloudinary_service),
) -> ProductService:
    return ProductService(db, media)


def get_category_service(db: Session = Depends(get_db_session)) -> CategoryService:
    return CategoryService(db, get_config().catalog)


def get_attribute_service(db: Session = Depends(get_db_session)) -> AttributeService:
    return AttributeService(db)


def get_order_service(db: Session = Depends(get_db_session)) -> OrderService:
    return OrderService(db)


def get_coupon_service(db: Session = Depends(get_db_session)) -> CouponService:
    return CouponService(db)


def get_favorite_service(db: Session = Depends(get_db_session)) -> FavoriteService:
    return FavoriteService(db)


def get_cart_service(db: Session = Depends(get_db_session)) -> CartService:
    return CartService(db)


def _bearer_token(request: Request) -> str | None:
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        return None
    return auth_header.split(" ", 1)[1].strip() or None


async def get_current_user(
    request: Request,
    db: Session = Depends(get_db_session),
    jwt_verify: JwtVerificationService = Depends(get_jwt_verify_service),
    users: UserManagementService = Depends(get_user_management_service),
) -> User:
    """Authenticate the request with a Clerk session token, with JIT user provisioning."""
    token = _bearer_token(request)
    if token is None:
        raise HTTPException(status_code=401, detail="Missing Bearer token")

    claims = await jwt_verify.verify_jwt(token)
    if not claims.subject:
        raise HTTPException(status_code=401, detail="JWT missing required subject claim")

    user = await users.provision_user_from_claims(claims)
    db.commit()

    request.state.claims = claims
    request.state.uid = user.id
    return user


async def require_admin(user: User = Depends(get_current_user)) -> User:
    if not user.is_admin:
        raise HTTPException(status_code=403, detail="Admin access required")
    return user
