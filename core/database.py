"""
Async PostgreSQL engine and session factory

The engine is created lazily on first use so importing the store or the
API never opens a connection pool.
"""

from typing import Optional
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from core.config import settings
import logging

logger = logging.getLogger(__name__)

_engine: Optional[AsyncEngine] = None
_factory: Optional[async_sessionmaker] = None


def get_engine() -> AsyncEngine:
    global _engine, _factory
    if _engine is None:
        _engine = create_async_engine(
            settings.DATABASE_URL,
            echo=settings.DB_ECHO,
            pool_size=settings.DB_POOL_SIZE,
            max_overflow=settings.DB_MAX_OVERFLOW,
            pool_pre_ping=True,
        )
        _factory = async_sessionmaker(_engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)
    return _engine


def async_session_maker() -> AsyncSession:
    """New session on the shared engine; use as ``async with async_session_maker() as session``"""
    get_engine()
    return _factory()


async def create_tables():
    """Create every table registered on Base.metadata that does not exist yet"""
    from models.base import Base
    import models.football  # noqa: F401
    import models.stats  # noqa: F401
    import models.usage  # noqa: F401
    import models.logs  # noqa: F401

    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info(f"Tables ensured: {', '.join(sorted(Base.metadata.tables))}")


async def dispose_engine():
    global _engine, _factory
    if _engine is not None:
        await _engine.dispose()
        _engine = None
        _factory = None
