"""Schema management for the storefront database."""

from loguru import logger
from sqlalchemy import Engine
from sqlmodel import SQLModel

from src.storefront.core.services.database.db_session import build_engine
from src.storefront.runtime.context import get_config


class DbManageService:
    def __init__(self, engine: Engine | None = None):
        self._engine = engine or build_engine(get_config())

    def create_all(self) -> None:
        """Create all database tables."""
        # Importing the entities package registers every table on the metadata
        import src.storefront.entities  # noqa: F401

        SQLModel.metadata.create_all(self._engine)
        logger.info("Database initialized with tables.")

    def table_names(self) -> list[str]:
        import src.storefront.entities  # noqa: F401

        return sorted(SQLModel.metadata.tables)
