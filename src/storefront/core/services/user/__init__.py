from .clerk_client import ClerkClient, profile_from_clerk_user, verify_clerk_webhook
from .user_management import UserManagementService

__all__ = [
    "ClerkClient",
    "UserManagementService",
    "profile_from_clerk_user",
    "verify_clerk_webhook",
]
