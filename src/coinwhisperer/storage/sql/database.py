"""Database connection and session management."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from coinwhisperer.storage.sql.models import Base

logger = logging.getLogger(__name__)


class Database:
    """
    Engine and session factory for one database URL.

    The engine is created on first use so constructing a Database never
    touches the network.
    """

    def __init__(self, url: str, echo: bool = False):
        """
        Args:
            url: SQLAlchemy async URL (postgresql+asyncpg://, sqlite+aiosqlite://)
            echo: Log every SQL statement
        """
        self.url = url
        self.echo = echo
        self._engine: AsyncEngine | None = None
        self._session_factory: async_sessionmaker[AsyncSession] | None = None

    @property
    def is_sqlite(self) -> bool:
        return make_url(self.url).get_backend_name() == "sqlite"

    @property
    def engine(self) -> AsyncEngine:
        """
        Get the async database engine.

        Returns:
            AsyncEngine instance
        """
        if self._engine is None:
            options = {"echo": self.echo, "pool_pre_ping": True}
            if not self.is_sqlite:
                options.update(pool_size=10, max_overflow=20)
            self._engine = create_async_engine(self.url, **options)
            logger.info(
                f"Database engine created: "
                f"{make_url(self.url).render_as_string(hide_password=True)}"
            )
        return self._engine

    @property
    def session_factory(self) -> async_sessionmaker[AsyncSession]:
        if self._session_factory is None:
            self._session_factory = async_sessionmaker(
                self.engine,
                class_=AsyncSession,
                expire_on_commit=False,
                autoflush=False,
            )
        return self._session_factory

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """
        Get an async database session, committed on success.

        Usage:
            async with database.session() as session:
                result = await session.execute(...)

        Yields:
            AsyncSession instance
        """
        session = self.session_factory()
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()

    async def create_all(self) -> None:
        """Create all tables if they don't exist."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database tables created")

    async def check_connection(self) -> bool:
        """
        Check if database connection is working.

        Returns:
            True if connection is successful
        """
        try:
            async with self.session() as session:
                await session.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.error(f"Database connection check failed: {e}")
            return False

    async def close(self) -> None:
        """Close database connections."""
        if self._engine:
            await self._engine.dispose()
            self._engine = None
            self._session_factory = None
            logger.info("Database connections closed")
