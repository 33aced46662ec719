"""Core services exports."""

# Cache revalidation
from .cache.revalidation import RevalidationService

# Database Services
from .database.db_manage import DbManageService
from .database.db_session import DbSessionService

# Email
from .email.newsletter_service import NewsletterService

# JWT Services
from .jwt.jwks import JWKSCache, JWKSCacheInMemory, JwksService
from .jwt.jwt_verify import JwtVerificationService

# Media
from .media.cloudinary_service import CloudinaryService

# Payments
from .payments.paypal_service import PayPalService
from .payments.stripe_service import StripeService

# User Services
from .user.clerk_client import ClerkClient
from .user.user_management import UserManagementService

__all__ = [
    # Cache revalidation
    "RevalidationService",
    # Database Services
    "DbManageService",
    "DbSessionService",
    # Email
    "NewsletterService",
    # JWT Services
    "JWKSCache",
    "JWKSCacheInMemory",
    "JwksService",
    "JwtVerificationService",
    # Media
    "CloudinaryService",
    # Payments
    "PayPalService",
    "StripeService",
    # User Services
    "ClerkClient",
    "UserManagementService",
]
