"""Database engine and session factory used across the application."""

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from loguru import logger
from sqlalchemy import Engine, text
from sqlmodel import Session, create_engine

from src.storefront.runtime.config.config_data import ConfigData
from src.storefront.runtime.context import get_config


def build_engine(config: ConfigData) -> Engine:
    """Create the SQLAlchemy engine for the configured database."""
    db_config = config.database
    engine_kwargs: dict[str, Any] = {
        "pool_pre_ping": True,
        "echo": False,
        "connect_args": _get_connect_args(config),
    }

    # SQLite uses a singleton/static pool that rejects sizing arguments
    if not db_config.is_sqlite:
        engine_kwargs.update(
            {
                "pool_size": db_config.pool_size,
                "max_overflow": db_config.max_overflow,
                "pool_timeout": db_config.pool_timeout,
                "pool_recycle": db_config.pool_recycle,
            }
        )

    return create_engine(db_config.connection_string, **engine_kwargs)


def _get_connect_args(config: ConfigData) -> dict[str, Any]:
    """Get database-specific connection arguments."""
    connect_args: dict[str, Any] = {}

    if "postgresql" in config.database.url:
        connect_args.update(
            {
                "application_name": f"storefront_{config.app.environment}",
                "connect_timeout": 30,
            }
        )
    elif config.database.is_sqlite:
        connect_args.update({"check_same_thread": False, "timeout": 20})
        if config.app.environment == "production":
            logger.warning(
                "SQLite is not recommended for production use. "
                "Consider PostgreSQL for better performance and reliability."
            )

    return connect_args


class DbSessionService:
    def __init__(self, engine: Engine | None = None):
        """Initialize the shared database engine and session factory."""
        main_config = get_config()
        logger.info(
            "Configuring database engine for environment: {}",
            main_config.app.environment,
        )
        self._engine = engine or build_engine(main_config)

    @property
    def engine(self) -> Engine:
        return self._engine

    def get_session(self) -> Session:
        """Return a new SQLModel session bound to the shared engine."""
        return Session(self._engine, expire_on_commit=False, autoflush=True)

    @contextmanager
    def session_scope(self) -> Iterator[Session]:
        """Context manager style helper for scripts and tests."""
        db = self.get_session()
        try:
            yield db
            db.commit()
        except Exception as e:
            db.rollback()
            logger.error(
                "Database transaction failed",
                error_type=type(e).__name__,
                error_message=str(e),
            )
            raise
        finally:
            db.close()

    def health_check(self) -> bool:
        """Perform a health check on the database connection."""
        try:
            with self._engine.connect() as connection:
                connection.execute(text("SELECT 1"))
                return True
        except Exception as e:
            logger.error(
                "Database health check failed",
                error_type=type(e).__name__,
                error_message=str(e),
            )
            return False

    def dispose(self) -> None:
        """Close every pooled connection."""
        self._engine.dispose()

    def get_pool_status(self) -> dict:
        """Get current connection pool status for monitoring."""
        pool = self._engine.pool
        return {
            stat: _pool_stat(pool, attr)
            for stat, attr in (
                ("size", "size"),
                ("checked_in", "checkedin"),
                ("checked_out", "checkedout"),
                ("overflow", "overflow"),
            )
        }


def _pool_stat(pool: Any, name: str) -> int:
    # Not every pool class exposes these as methods
    value = getattr(pool, name, 0)
    return value() if callable(value) else value
