"""Entity package: CartItem."""

from .entity import CartItem, normalize_option
from .repository import CartRepository
from .table import CartItemTable

__all__ = ["CartItem", "normalize_option", "CartRepository", "CartItemTable"]
