"""
Database session management.

WHY: Async database sessions are required for FastAPI's async/await pattern.
Using a context manager ensures proper connection cleanup and transaction management.
"""

from typing import AsyncGenerator
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker

from classroom.core.config import settings


def _engine_options() -> dict:
    """
    Pool options for the configured database.

    WHY: pool_size/max_overflow only apply to queue pools; SQLite URLs
    (used by local tooling) would reject them.
    """
    options = {"echo": settings.DEBUG, "pool_pre_ping": True}
    if settings.async_database_url.startswith("postgresql"):
        options.update(pool_size=10, max_overflow=20)
    return options


# Create async engine
# WHY: pool_pre_ping ensures stale connections are recycled, preventing
# "server has gone away" errors in long-running applications.
engine = create_async_engine(settings.async_database_url, **_engine_options())

# Create session factory
# WHY: expire_on_commit=False prevents lazy-loading issues after commit.
# autoflush=False gives explicit control over when writes hit the database.
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency to get database session.

    WHY: Each request runs in exactly one transaction. Everything a handler
    writes (for example an organization and its founding admin) is committed
    together at the end, or rolled back together if anything raised.

    Yields:
        AsyncSession: Database session for the request
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()
