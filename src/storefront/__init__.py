"""Storefront and admin API for a clothing shop.

Catalog, cart, checkout and orders over SQLModel, with Clerk for identity,
Stripe and PayPal for payments, Cloudinary for images and Resend for mail.
"""

__version__ = "0.1.0"
