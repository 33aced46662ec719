"""Entity package: Favorite."""

from .entity import Favorite
from .repository import FavoriteRepository
from .table import FavoriteTable

__all__ = ["Favorite", "FavoriteRepository", "FavoriteTable"]
