"""
Stockpoint API Dependencies

Dependency injection for DB sessions.
"""

from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession

from db.session import AsyncSessionLocal


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Yield an async database session. Uncommitted work is rolled back on close."""
    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()
