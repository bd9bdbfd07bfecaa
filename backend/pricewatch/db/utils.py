"""Database utility functions."""

from sqlalchemy.ext.asyncio import AsyncEngine

from pricewatch.models import Base


async def create_tables(engine: AsyncEngine) -> None:
    """Create every table registered on Base.metadata (no-op for existing ones)."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
