from .revalidation import RevalidationService

__all__ = ["RevalidationService"]
