from loguru import logger
from sqlmodel import Session

from src.storefront.core.errors import ConflictError, NotFoundError, ValidationFailed
from src.storefront.entities.catalog.attribute import (
    Season,
    SeasonRepository,
    Size,
    SizeRepository,
)


class AttributeService:
    """Admin-managed season and size lists used by the product form."""

    def __init__(self, session: Session) -> None:
        self._seasons = SeasonRepository(session)
        self._sizes = SizeRepository(session)

    def list_seasons(self) -> list[Season]:
        return self._seasons.list_all()

    def add_season(self, name: str | None) -> Season:
        name = (name or "").strip()
        if not name:
            raise ValidationFailed("Name is required")
        if self._seasons.get_by_name(name):
            raise ConflictError("This season already exists")
        season = self._seasons.create(Season(name=name))
        logger.info("Added season {}", season.name)
        return season

    def delete_season(self, name: str | None) -> None:
        if not name or not self._seasons.delete_by_name(name.strip()):
            raise NotFoundError("Season not found")

    def list_sizes(self) -> list[Size]:
        return self._sizes.list_all()

    def add_size(self, name: str | None) -> Size:
        name = (name or "").strip().upper()
        if not name:
            raise ValidationFailed("Name is required")
        if self._sizes.get_by_name(name):
            raise ConflictError("This size already exists")
        size = self._sizes.create(Size(name=name, order=self._sizes.max_order() + 1))
        logger.info("Added size {}", size.name)
        return size

    def delete_size(self, name: str | None) -> None:
        if not name or not self._sizes.delete_by_name(name.strip().upper()):
            raise NotFoundError("Size not found")
