"""Async SQLAlchemy database engine and session management.

Provides the storage layer every repository runs on:
- One ``Database`` object per process or test, injected into services
- Read scopes via ``Database.session()`` (nothing is committed)
- Atomic write scopes via ``Database.transaction()`` (commit on success,
  rollback on error)
- Driver errors translated into ``StorageUnavailable`` / ``TransactionFailure``

Statements are always SQLAlchemy constructs with bound parameters.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy.exc import InterfaceError, OperationalError, SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from core.exceptions import StorageUnavailable, TransactionFailure
from engine.config import DatabaseConfig

logger = logging.getLogger(__name__)


def _reason(error: SQLAlchemyError) -> str:
    orig = getattr(error, "orig", None)
    return str(orig) if orig is not None else str(error)


class Database:
    """Engine + session factory for one storage backend.

    Usage::

        db = Database("sqlite+aiosqlite:///./configurator.db")
        await db.init_db()

        async with db.session() as session:
            product = await ProductRepository(session).get(product_id)

        async with db.transaction() as session:
            await ConfigurationRepository(session).save(configuration)
    """

    def __init__(
        self,
        url: str,
        echo: bool = False,
        pool_size: int = 20,
        max_overflow: int = 10,
    ):
        self.url = url
        engine_kwargs: dict = {"echo": echo}
        if not url.startswith("sqlite"):
            engine_kwargs.update(
                pool_size=pool_size,
                max_overflow=max_overflow,
                pool_pre_ping=True,
            )
        self.engine: AsyncEngine = create_async_engine(url, **engine_kwargs)
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    @classmethod
    def from_config(cls, config: DatabaseConfig) -> "Database":
        return cls(
            config.url,
            echo=config.echo,
            pool_size=config.pool_size,
            max_overflow=config.max_overflow,
        )

    # -- Scopes --

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Read scope. Anything left uncommitted is discarded on exit."""
        async with self.session_factory() as session:
            try:
                yield session
            except (OperationalError, InterfaceError) as e:
                logger.error("Storage unavailable during read: %s", _reason(e))
                raise StorageUnavailable(_reason(e)) from e

    @asynccontextmanager
    async def transaction(self) -> AsyncGenerator[AsyncSession, None]:
        """Atomic write scope.

        Every statement issued on the yielded session is committed together
        or not at all. Non-storage exceptions raised by the caller roll the
        transaction back and propagate unchanged.
        """
        async with self.session_factory() as session:
            try:
                async with session.begin():
                    yield session
            except (OperationalError, InterfaceError) as e:
                logger.error("Storage unavailable during transaction: %s", _reason(e))
                raise StorageUnavailable(_reason(e)) from e
            except SQLAlchemyError as e:
                logger.error("Transaction rolled back: %s", _reason(e))
                raise TransactionFailure(_reason(e)) from e

    # -- Lifecycle hooks --

    async def init_db(self) -> None:
        """Create all tables from the models (dev/test only)."""
        import catalog.models.db_models  # noqa: F401
        from core.models.base import Base

        try:
            async with self.engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
        except (OperationalError, InterfaceError) as e:
            raise StorageUnavailable(_reason(e)) from e

    async def close(self) -> None:
        """Dispose of the connection pool on shutdown."""
        await self.engine.dispose()
