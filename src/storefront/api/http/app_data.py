from dataclasses import dataclass

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


@dataclass
class ApplicationDependencies:
    jwks_cache: JWKSCacheInMemory
    jwks_service: JwksService
    jwt_verify_service: JwtVerificationService
    database_service: DbSessionService
    clerk_client: ClerkClient
    cloudinary_service: CloudinaryService
    stripe_service: StripeService
    paypal_service: PayPalService
    newsletter_service: NewsletterService
    revalidation_service: RevalidationService
