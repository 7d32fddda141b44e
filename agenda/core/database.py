from typing import AsyncIterator, Optional

import structlog
from fastapi import Request
from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import declarative_base

logger = structlog.get_logger(__name__)

# SQLAlchemy Base class for models
Base = declarative_base()


class Database:
    """Process-wide database handle.

    The engine is created on first use and disposed explicitly at shutdown.
    One instance lives on ``app.state.database`` and request handlers reach
    it through the ``get_db`` dependency.
    """

    def __init__(self, url: str, echo: bool = False):
        self.url = url
        self.echo = echo
        self._engine: Optional[AsyncEngine] = None
        self._session_factory: Optional[async_sessionmaker[AsyncSession]] = None

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            engine_kwargs = {"echo": self.echo, "future": True}
            if not self.url.startswith("sqlite"):
                engine_kwargs.update(pool_pre_ping=True, pool_recycle=300)
            self._engine = create_async_engine(self.url, **engine_kwargs)
        return self._engine

    @property
    def session_factory(self) -> async_sessionmaker[AsyncSession]:
        if self._session_factory is None:
            self._session_factory = async_sessionmaker(
                self.engine, class_=AsyncSession, expire_on_commit=False
            )
        return self._session_factory

    async def connect(self) -> None:
        """Verify the database is reachable."""
        try:
            async with self.engine.begin() as conn:
                await conn.execute(text("SELECT 1"))
            logger.info("Database connection initialized successfully")
        except Exception as e:
            logger.error("Failed to initialize database", exc_info=e)
            raise

    async def create_all(self) -> None:
        """Create all tables registered on ``Base``."""
        # Import models so they are registered with SQLAlchemy
        import agenda.models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def dispose(self) -> None:
        if self._engine is not None:
            await self._engine.dispose()
            logger.info("Database engine disposed")
        self._engine = None
        self._session_factory = None

    async def session(self) -> AsyncIterator[AsyncSession]:
        async with self.session_factory() as session:
            try:
                yield session
            except Exception as e:
                await session.rollback()
                logger.error("Database session error", exc_info=e)
                raise


async def get_db(request: Request) -> AsyncIterator[AsyncSession]:
    """Dependency to get database session."""
    database: Database = request.app.state.database
    async for session in database.session():
        yield session
