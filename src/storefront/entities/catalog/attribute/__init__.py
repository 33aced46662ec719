"""Entity package: Season and Size."""

from .entity import Season, Size
from .repository import SeasonRepository, SizeRepository
from .table import SeasonTable, SizeTable

__all__ = [
    "Season",
    "SeasonRepository",
    "SeasonTable",
    "Size",
    "SizeRepository",
    "SizeTable",
]
