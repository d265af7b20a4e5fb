"""
Async SQLAlchemy engine and session factory.

Usage:
    from db.engine import DatabaseManager

    db_manager = DatabaseManager()
    db_manager.init(config.DATABASE_URL)
    async with db_manager.session() as db:
        ...
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import NullPool, StaticPool

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """Declarative base shared by the session tables."""
    pass


def normalize_database_url(database_url: str) -> str:
    """Pick the async driver for the configured database."""
    if database_url.startswith("sqlite://"):
        return database_url.replace("sqlite://", "sqlite+aiosqlite://", 1)
    if database_url.startswith("postgresql://"):
        return database_url.replace("postgresql://", "postgresql+asyncpg://", 1)
    if "://" not in database_url:
        return f"postgresql+asyncpg://{database_url}"
    return database_url


class DatabaseManager:
    """Owns the async engine and hands out transactional sessions."""

    def __init__(self):
        self._engine: AsyncEngine | None = None
        self._session_factory: async_sessionmaker[AsyncSession] | None = None
        self._initialized = False

    def init(self, database_url: str, echo: bool = False, pool_size: int = 5) -> None:
        """
        Create the async engine and session factory for ``database_url``.

        Args:
            database_url: Database URL (asyncpg or aiosqlite)
            echo: Log emitted SQL
            pool_size: Connection pool size (0 for NullPool)
        """
        if self._initialized:
            logger.warning("Database manager already initialized")
            return

        database_url = normalize_database_url(database_url)
        logger.info("Initializing database connection...")

        if database_url.startswith("sqlite+aiosqlite://"):
            # One shared connection so an in-memory database is visible to every session
            self._engine = create_async_engine(
                database_url,
                echo=echo,
                poolclass=StaticPool,
                connect_args={"check_same_thread": False},
            )
        elif pool_size == 0:
            self._engine = create_async_engine(
                database_url,
                echo=echo,
                poolclass=NullPool,
            )
        else:
            self._engine = create_async_engine(
                database_url,
                echo=echo,
                pool_size=pool_size,
                max_overflow=10,
                pool_pre_ping=True,
                pool_recycle=300,
            )

        self._session_factory = async_sessionmaker(
            bind=self._engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

        self._initialized = True
        logger.info("Database engine ready")

    async def close(self) -> None:
        """Dispose of the engine and its pooled connections."""
        if self._engine:
            await self._engine.dispose()
            self._engine = None
            self._session_factory = None
            self._initialized = False
            logger.info("Database engine disposed")

    async def create_all(self) -> None:
        """Create tables directly from metadata. Alembic owns the schema in production."""
        if not self._engine:
            raise RuntimeError("Database not initialized. Call init() first.")
        # Registers the mapped tables on Base.metadata
        import db.models  # noqa: F401

        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Yield a session that commits on success and rolls back on error."""
        if not self._initialized or not self._session_factory:
            raise RuntimeError("Database not initialized. Call init() first.")

        async with self._session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def check_connection(self) -> bool:
        """
        Run a trivial query against the database.

        Returns:
            bool: True when the query succeeds
        """
        if not self._initialized or not self._engine:
            return False

        try:
            async with self._engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.error(f"Database health check failed: {e}")
            return False
