"""
Database configuration with async support
"""

import logging
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel

from microblog.core.config import settings

# Configure logging based on environment
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

logger = logging.getLogger(__name__)

logger.info(f"Environment: {settings.ENVIRONMENT}")


def _database_url() -> str:
    return str(settings.DATABASE_URL).replace("postgresql://", "postgresql+asyncpg://", 1)


def _engine_options(url: str) -> dict:
    """Pool and timeout options; only PostgreSQL gets a sized pool."""
    if not url.startswith("postgresql"):
        return {}
    return {
        "pool_size": settings.DB_POOL_SIZE,
        "max_overflow": settings.DB_MAX_OVERFLOW,
        "pool_timeout": settings.DB_POOL_TIMEOUT_SECONDS,
        "pool_pre_ping": True,  # Verify connections before use
        "pool_recycle": 3600,  # Recycle connections after 1 hour
        "connect_args": {
            "timeout": settings.DB_COMMAND_TIMEOUT_SECONDS,
            "command_timeout": settings.DB_COMMAND_TIMEOUT_SECONDS,
            "server_settings": {
                "application_name": "microblog",
            },
        },
    }


async_engine = create_async_engine(
    _database_url(),
    echo=settings.DB_ECHO,
    future=True,
    **_engine_options(_database_url())
)

# Async session factory
AsyncSessionLocal = sessionmaker(
    bind=async_engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False
)


async def init_db():
    """Initialize database tables"""
    import microblog.models  # noqa: F401  registers the tables on SQLModel.metadata

    async with async_engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Async database session dependency
    Usage:
    async def some_endpoint(db: AsyncSession = Depends(get_db)):
        ...
    """
    async with AsyncSessionLocal() as session:
        yield session
