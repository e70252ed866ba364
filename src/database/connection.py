"""
Database Connection Management

Async SQLAlchemy 2.0 engine wrapped in a lifecycle-managed handle. The
application creates one ``Database`` per process, connects it at startup,
passes it to the analytics engine and disposes it at shutdown.
"""

import time
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

import structlog
from sqlalchemy import text
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from src.config.settings import DatabaseSettings
from src.database.models import Base

logger = structlog.get_logger(__name__)


class Database:
    """
    Handle over one async engine and its session factory.

    Example:
        database = Database.from_settings(settings.database)
        await database.connect()
        async with database.session() as session:
            result = await session.execute(query)
        await database.close()
    """

    def __init__(self, url: str, echo: bool = False):
        self.url = url
        self.echo = echo
        self._engine: Optional[AsyncEngine] = None
        self._session_factory: Optional[async_sessionmaker[AsyncSession]] = None

    @classmethod
    def from_settings(cls, settings: DatabaseSettings) -> "Database":
        return cls(settings.async_url, echo=settings.echo)

    @property
    def is_connected(self) -> bool:
        return self._engine is not None

    @property
    def engine(self) -> AsyncEngine:
        """
        Get the database engine.

        Raises:
            RuntimeError: If the database is not connected
        """
        if self._engine is None:
            raise RuntimeError("Database not initialized. Call connect() first.")
        return self._engine

    async def connect(self) -> AsyncEngine:
        """
        Create the engine and verify the connection.

        Returns:
            AsyncEngine: The initialized database engine
        """
        if self._engine is not None:
            logger.warning("Database already initialized")
            return self._engine

        # asyncpg and aiosqlite manage their own connections
        self._engine = create_async_engine(
            self.url,
            echo=self.echo,
            pool_pre_ping=True,
            poolclass=NullPool,
        )
        self._session_factory = async_sessionmaker(
            bind=self._engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

        url = make_url(self.url)
        try:
            async with self._engine.begin() as conn:
                await conn.execute(text("SELECT 1"))
            logger.info(
                "Database connection established",
                driver=url.drivername,
                host=url.host,
                database=url.database,
            )
        except Exception as e:
            logger.error("Failed to connect to database", driver=url.drivername, error=str(e))
            await self.close()
            raise

        return self._engine

    async def close(self) -> None:
        """Dispose of the engine and all pooled connections."""
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None
            self._session_factory = None
            logger.info("Database connection closed")

    async def create_schema(self) -> None:
        """Create tables and indexes that do not exist yet."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database schema ensured", tables=sorted(Base.metadata.tables))

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """
        Get a database session.

        Context manager that provides a session and handles
        commit/rollback/close automatically. Sessions are not safe for
        concurrent use, so concurrent queries each open their own.

        Yields:
            AsyncSession: Database session
        """
        if self._session_factory is None:
            logger.error("Database not initialized when session() called")
            raise RuntimeError("Database not initialized. Call connect() first.")

        session = self._session_factory()
        try:
            yield session
            await session.commit()
        except Exception as e:
            logger.error("Database session error, rolling back", error=str(e), error_type=type(e).__name__)
            await session.rollback()
            raise
        finally:
            await session.close()

    async def health(self) -> dict:
        """
        Check database health status.

        Returns:
            dict: Health status with latency information
        """
        try:
            start = time.perf_counter()
            async with self.session() as session:
                await session.execute(text("SELECT 1"))
            latency_ms = (time.perf_counter() - start) * 1000

            return {
                "status": "healthy",
                "latency_ms": round(latency_ms, 2),
            }
        except Exception as e:
            logger.warning("Database health check failed", error=str(e), error_type=type(e).__name__)
            return {"status": "unhealthy"}
