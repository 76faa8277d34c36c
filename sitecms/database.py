"""
Database connection and session management for SQLAlchemy 2.0.
Configured for async operations with PostgreSQL in production and SQLite locally.
"""
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    create_async_engine,
    async_sessionmaker,
)
from sqlalchemy.orm import declarative_base
from sqlalchemy import text
from urllib.parse import urlparse
import logging

from sitecms.config import settings

logger = logging.getLogger(__name__)

# Create declarative base for models
Base = declarative_base()

_engine_args = {
    "echo": False,  # Set to True for SQL query logging in development
}

# Pool settings only apply to PostgreSQL (not SQLite)
if settings.DATABASE_URL and settings.DATABASE_URL.startswith("postgresql"):
    _engine_args.update({
        "pool_size": 10,
        "max_overflow": 20,
        "pool_pre_ping": True,  # Verify connections before using (handles stale connections)
        "pool_recycle": 3600,
        "connect_args": {
            "server_settings": {
                "application_name": "sitecms-backend"
            }
        }
    })

engine = create_async_engine(
    settings.DATABASE_URL if settings.DATABASE_URL else "sqlite+aiosqlite:///:memory:",
    **_engine_args
)

# Create async session factory
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)


async def get_db() -> AsyncSession:
    """
    FastAPI dependency for database sessions.
    Services commit explicitly; anything left uncommitted after an error is rolled back.

    Usage:
        @router.get("/endpoint")
        async def my_endpoint(db: AsyncSession = Depends(get_db)):
            pass
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception as e:
            await session.rollback()
            logger.debug(f"Database session rolled back: {str(e)}")
            raise
        finally:
            await session.close()


def _validate_database_url(url: str) -> tuple[bool, str]:
    """
    Validate database URL and provide diagnostic information.
    Returns (is_valid, diagnostic_message)
    """
    if not url:
        return False, "DATABASE_URL is empty"

    parsed = urlparse(url)

    if url.startswith("sqlite"):
        if not url.startswith("sqlite+aiosqlite://"):
            return False, f"SQLite URLs must use the async driver (sqlite+aiosqlite://), got: {parsed.scheme}"
        return True, f"SQLite database: {parsed.path or ':memory:'}"

    if not url.startswith(("postgresql+asyncpg://",)):
        return False, f"Invalid database URL scheme. Expected postgresql+asyncpg:// or sqlite+aiosqlite://, got: {parsed.scheme}"

    if not parsed.hostname:
        return False, "No hostname found in DATABASE_URL"

    return True, f"URL format valid. Hostname: {parsed.hostname}, Port: {parsed.port or 5432}, Database: {parsed.path or '/postgres'}"


async def init_db():
    """
    Verify the database connection on startup.
    Creates tables only when DB_CREATE_TABLES is set; migrations own the schema otherwise.
    """
    if not settings.DATABASE_URL:
        logger.warning("DATABASE_URL not set, using in-memory SQLite database")
    else:
        is_valid, diagnostic = _validate_database_url(settings.DATABASE_URL)
        if not is_valid:
            logger.error(f"Invalid DATABASE_URL: {diagnostic}")
            raise ValueError(f"Invalid DATABASE_URL: {diagnostic}")
        logger.info(f"Database URL validation: {diagnostic}")

    try:
        async with engine.begin() as conn:
            await conn.execute(text("SELECT 1"))
            if settings.DB_CREATE_TABLES or not settings.DATABASE_URL:
                # Import models so every table is registered on Base.metadata
                from sitecms import models  # noqa: F401
                await conn.run_sync(Base.metadata.create_all)
                logger.info("Database tables created")
        logger.info("Database connection initialized successfully")
    except Exception as e:
        logger.error(f"Database connection failed ({type(e).__name__}): {str(e)}")
        raise


async def close_db():
    """Close database connections on shutdown."""
    await engine.dispose()
    logger.info("Database connections closed")
