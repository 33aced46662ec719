from .paypal_service import PayPalService, apply_paypal_event
from .stripe_service import StripeService

__all__ = ["PayPalService", "StripeService", "apply_paypal_event"]
