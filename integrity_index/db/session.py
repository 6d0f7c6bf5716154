"""
Database session and engine management.

Provides async database connections with proper connection pooling,
transaction management, and context managers.

Responsibility: Manage database connections and sessions
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional
from sqlalchemy.ext.asyncio import (
    create_async_engine,
    AsyncEngine,
    AsyncSession,
    async_sessionmaker
)
from sqlalchemy.pool import AsyncAdaptedQueuePool, NullPool, StaticPool
import logging

from ..config import settings

logger = logging.getLogger(__name__)


class Database:
    """
    Database connection manager.

    Handles engine creation, connection pooling, and session management
    for PostgreSQL in production and SQLite for local runs and tests.

    Example:
        db = Database()
        await db.initialize()

        async with db.session() as session:
            result = await session.execute(query)

        await db.close()
    """

    def __init__(self, connection_string: Optional[str] = None):
        """
        Args:
            connection_string: Override for ``settings.db.connection_string``
        """
        self.connection_string = connection_string
        self.engine: AsyncEngine | None = None
        self.session_factory: async_sessionmaker[AsyncSession] | None = None
        self._initialized = False

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    async def initialize(self) -> None:
        """
        Initialize database engine and session factory.

        Picks the pool class from the driver in the connection string.
        """
        if self._initialized:
            logger.warning("Database already initialized")
            return

        connection_string = self.connection_string or settings.db.connection_string
        driver = connection_string.split("://")[0]

        logger.info(f"Initializing database: {driver}")

        if driver.startswith("sqlite"):
            if ":memory:" in connection_string or connection_string.endswith("://"):
                # One shared connection, otherwise every session sees an empty db
                pool_class = StaticPool
            else:
                pool_class = NullPool
            pool_kwargs = {"connect_args": {"check_same_thread": False}}
            logger.info(f"Using SQLite with {pool_class.__name__}")
        else:
            pool_class = AsyncAdaptedQueuePool
            pool_kwargs = {
                "pool_size": settings.db.pool_size,
                "max_overflow": settings.db.max_overflow,
                "pool_timeout": settings.db.pool_timeout,
                "pool_recycle": settings.db.pool_recycle,
                "pool_pre_ping": True,
            }
            logger.info(
                f"Using PostgreSQL with AsyncAdaptedQueuePool "
                f"(size={settings.db.pool_size}, "
                f"max_overflow={settings.db.max_overflow})"
            )

        self.engine = create_async_engine(
            connection_string,
            echo=settings.db.echo,
            echo_pool=settings.db.echo_pool,
            poolclass=pool_class,
            **pool_kwargs
        )

        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

        self._initialized = True
        logger.info("Database initialized successfully")

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """
        Create a new database session with automatic cleanup.

        Commits on success, rolls back and re-raises on error.
        """
        if not self._initialized or not self.session_factory:
            raise RuntimeError("Database not initialized. Call initialize() first.")

        session = self.session_factory()

        try:
            yield session
            if session.in_transaction():
                await session.commit()
        except Exception as e:
            logger.error(f"Session error, rolling back: {e}")
            await session.rollback()
            raise
        finally:
            await session.close()

    async def create_tables(self) -> None:
        """
        Create all database tables.

        Uses SQLAlchemy metadata to create tables if they don't exist.
        """
        if not self._initialized or not self.engine:
            raise RuntimeError("Database not initialized")

        from .models import Base

        logger.info("Creating database tables...")

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

        logger.info("Database tables created successfully")

    async def drop_tables(self) -> None:
        """
        Drop all database tables.

        WARNING: This deletes all data! Only use in development/testing.
        """
        if not self._initialized or not self.engine:
            raise RuntimeError("Database not initialized")

        from .models import Base

        logger.warning("Dropping all database tables...")

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)

        logger.warning("All database tables dropped")

    async def close(self) -> None:
        """Close database engine and cleanup connections."""
        if not self._initialized:
            return

        if self.engine:
            logger.info("Closing database connections...")
            await self.engine.dispose()
            self.engine = None

        self.session_factory = None
        self._initialized = False

        logger.info("Database closed")


# Global database instance
db = Database()


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency yielding a session from the global database."""
    if not db.is_initialized:
        await db.initialize()
    async with db.session() as session:
        yield session
