from .jwks import JWKSCache, JWKSCacheInMemory, JwksService
from .jwt_utils import JwtPreview, create_token_claims, preview_jwt
from .jwt_verify import JwtVerificationService

__all__ = [
    "JWKSCache",
    "JWKSCacheInMemory",
    "JwksService",
    "JwtPreview",
    "JwtVerificationService",
    "create_token_claims",
    "preview_jwt",
]
